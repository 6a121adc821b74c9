#!/usr/bin/env python3
# Sub-O-TX - AlienVault OTX Domain Recon
# Modes: dns (passive DNS unique hosts) | url (paginated url_list unique URLs)

import argparse
import importlib.util
import os
import re
import signal
import sys
import time

from recon import __version__, console
from recon.console import log
from recon.errors import ConfigError, ValidationError

MODES = ("dns", "url")
DOMAIN_RE = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
# import name -> distribution name
DEPENDENCIES = {"requests": "requests", "yaml": "PyYAML"}

# Global flags for graceful shutdown
_shutdown_requested = False
_force_quit = False


def _handle_shutdown(signum, frame):
    """First CTRL+C finishes the current domain, second one quits."""
    global _shutdown_requested, _force_quit
    if not _shutdown_requested:
        _shutdown_requested = True
        print("\n[!] Shutdown requested - finishing current domain...")
        print("[!] Press CTRL+C again to force quit")
    else:
        _force_quit = True
        print("\n[!] Force quit")
        os._exit(130)


def shutdown_requested():
    return _shutdown_requested


def check_dependencies():
    missing = [dist for mod, dist in DEPENDENCIES.items() if importlib.util.find_spec(mod) is None]
    for dist in missing:
        log(f"Missing dependency: {dist} (pip install {dist})", "error")
    return not missing


def is_valid_domain(domain):
    return bool(domain) and DOMAIN_RE.fullmatch(domain) is not None


def validate_domain(domain):
    if not is_valid_domain(domain):
        raise ValidationError(f"Invalid domain: {domain}")
    return domain


def read_domains(path):
    """Non-empty lines of a domain list, stripped, in file order."""
    if not os.path.isfile(path):
        raise ConfigError(f"File not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8', errors='ignore') as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise ConfigError(f"Cannot read domain file {path}: {e}") from e


class UsageError(Exception):
    pass


class CompactFormatter(argparse.RawTextHelpFormatter):
    def _format_action_invocation(self, action):
        if not action.option_strings:
            return super()._format_action_invocation(action)
        args_string = ''
        if action.nargs != 0:
            args_string = ' ' + self._format_args(action, action.dest.upper())
        return ', '.join(action.option_strings) + args_string


class SubOTXArgumentParser(argparse.ArgumentParser):
    # usage problems exit 1, not argparse's 2
    def error(self, message):
        raise UsageError(message)


def build_parser():
    parser = SubOTXArgumentParser(
        prog="subotx",
        usage="%(prog)s -d <domain>|-f <file> -k <api_key|file> -t <url|dns> [-l <limit>]",
        description=f"Sub-O-TX v{__version__} - AlienVault OTX domain recon.\n"
                    "Results are written to logs/<domain>/dns_data.txt or url_data.txt.",
        epilog="Examples:\n"
               "  subotx -d example.com -k YOUR_KEY -t dns\n"
               "  subotx -d example.com -k keys.txt -t url -l 100\n"
               "  subotx -f domains.txt -k keys.txt -t url",
        formatter_class=CompactFormatter,
    )
    g_target = parser.add_argument_group("TARGETS")
    g_target.add_argument("-d", dest="domain", help="Single domain to process")
    g_target.add_argument("-f", dest="file", help="File with one domain per line")

    g_api = parser.add_argument_group("API")
    g_api.add_argument("-k", dest="key", help="Literal API key or file with keys (rotation)")
    g_api.add_argument("-t", dest="mode", help="Mode: url=url_list (paginated), dns=passive_dns (single)")
    g_api.add_argument("-l", dest="limit", type=int, help="URL page size (default: 100 or $PAGE_LIMIT)")
    g_api.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default: 30)")

    g_output = parser.add_argument_group("OUTPUT")
    g_output.add_argument("-o", "--output-dir", dest="output_dir", default="logs", help="Output directory (default: logs)")
    g_output.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (warnings, errors and results only)")
    g_output.add_argument("-v", "--verbose", action="store_true", help="Verbose mode (log every request)")
    g_output.add_argument("--no-banner", action="store_true", help="Suppress the ASCII banner (same as NO_BANNER=1)")
    g_output.add_argument("--version", action="store_true", help="Show version and exit")
    return parser


def build_client(settings):
    from recon.otx_enum import OTXClient
    return OTXClient(base_url=settings.base_url, timeout=settings.request_timeout)


def run_domains(domains, mode, client, rotator, settings, output_dir="logs", limit=None,
                batch=False, sleep=time.sleep):
    """Process domains strictly in order. Invalid ones are skipped in batch mode."""
    from recon.otx_enum import process_domain

    results, skipped = [], []
    for domain in domains:
        if shutdown_requested():
            log("[!] Stopping before next domain (shutdown requested)", "warn")
            break
        try:
            validate_domain(domain)
        except ValidationError as e:
            if not batch:
                raise
            log(f"[skip] {e}", "warn")
            skipped.append(domain)
            continue
        console.big_banner()
        results.append(process_domain(domain, mode, client, rotator, settings,
                                      output_dir=output_dir, limit=limit,
                                      sleep=sleep, should_stop=shutdown_requested))
    return results, skipped


def run(args, sleep=time.sleep):
    """Validate arguments and process every target. Returns the exit code."""
    from auth.key_manager import KeyRotator, load_api_keys
    from recon.settings import Settings, load_provider_config, resolve_api_source

    settings = Settings.from_env()
    if args.timeout is not None:
        if args.timeout <= 0:
            raise UsageError("--timeout must be positive")
        settings.request_timeout = args.timeout
    if args.limit is not None and args.limit < 1:
        raise UsageError("-l must be a positive integer")
    console.configure(quiet=args.quiet, verbose=args.verbose,
                      no_banner=args.no_banner or settings.no_banner)

    if not args.mode:
        raise UsageError("-t is required")
    if args.mode not in MODES:
        raise UsageError(f"-t must be url or dns (got {args.mode!r})")

    source = resolve_api_source(args.key, os.environ, load_provider_config())
    if source is None:
        raise UsageError("-k is required (or set OTX_API_KEY)")
    keys = load_api_keys(source)

    if args.domain:
        domains, batch = [validate_domain(args.domain)], False
    elif args.file:
        domains, batch = read_domains(args.file), True
    else:
        raise UsageError("provide -d <domain> or -f <file>")

    console.print_header(__version__)
    if len(keys) > 1:
        console.verbose(f"[*] Loaded {len(keys)} API keys (round-robin)")

    started = time.time()
    rotator = KeyRotator(keys, min_gap=settings.per_key_gap, sleep=sleep)
    client = build_client(settings)
    try:
        results, skipped = run_domains(domains, args.mode, client, rotator, settings,
                                       output_dir=args.output_dir, limit=args.limit,
                                       batch=batch, sleep=sleep)
    finally:
        client.close()

    if batch:
        ok = sum(1 for r in results if r.state.ok)
        failed = len(results) - ok
        log(f"\nSummary: mode={args.mode} domains={len(results)} ok={ok} failed={failed} "
            f"skipped={len(skipped)} elapsed={time.time() - started:.1f}s", "summary")
    return 0


def main(argv=None):
    previous = signal.signal(signal.SIGINT, _handle_shutdown)
    try:
        return _main(argv)
    finally:
        signal.signal(signal.SIGINT, previous)


def _main(argv):
    if not check_dependencies():
        return 1

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.version:
            print(f"Sub-O-TX {__version__}")
            return 0
        rc = run(args)
    except UsageError as e:
        log(f"[!] {e}", "error")
        parser.print_usage()
        return 1
    except (ConfigError, ValidationError) as e:
        log(f"[!] {e}", "error")
        return 1
    except KeyboardInterrupt:
        print("\n[!] Process stopped")
        return 130

    if _shutdown_requested and not _force_quit:
        print("\n[!] Process stopped gracefully")
        return 130
    return rc


if __name__ == "__main__":
    sys.exit(main())
