# recon/console.py
import os
import sys

__all__ = ["C", "color", "configure", "log", "verbose", "print_header", "big_banner"]

# Simple color helper (falls back if no ANSI support)
class C:
    R = "\033[31m"; G = "\033[32m"; Y = "\033[33m"; B = "\033[34m"; M = "\033[35m"; C = "\033[36m"; W = "\033[37m"; RS = "\033[0m"


_state = {"quiet": False, "verbose": False, "no_banner": False}

PALETTE = {
    "info": C.B,
    "ok": C.G,
    "warn": C.Y,
    "error": C.R,
    "result": C.G,
    "summary": C.C,
}

BANNER = r"""
_____       _           _____      _______   __
/  ___|     | |         |  _  |    |_   _\ \ / /
\ `--. _   _| |__ ______| | | |______| |  \ V /
 `--. \ | | | '_ \______| | | |______| |  /   \
/\__/ / |_| | |_) |     \ \_/ /      | | / /^\ \
\____/ \__,_|_.__/       \___/       \_/ \/   \/
"""


def configure(quiet=False, verbose=False, no_banner=False):
    _state["quiet"] = bool(quiet)
    _state["verbose"] = bool(verbose) and not quiet
    _state["no_banner"] = bool(no_banner)


def color(txt, col):
    if os.getenv("NO_COLOR") or not sys.stdout.isatty():
        return txt
    return col + txt + C.RS


def log(msg, level="info"):
    """Print a console line. Quiet mode keeps only warnings, errors and results."""
    if _state["quiet"] and level not in ("result", "summary", "warn", "error"):
        return
    print(color(msg, PALETTE.get(level, C.W)), flush=True)


def verbose(msg):
    if _state["verbose"]:
        log(msg, "info")


def print_header(version):
    if _state["quiet"]:
        return
    print(f"{color(f'Sub-O-TX v{version}', C.C)} - AlienVault OTX Domain Recon", flush=True)


def big_banner():
    """Large banner shown before each domain unless NO_BANNER/--no-banner."""
    if _state["quiet"] or _state["no_banner"]:
        return
    print(color(BANNER, C.M), flush=True)
