# recon/otx_enum.py
"""AlienVault OTX domain indicators: passive DNS hostnames and paginated URL lists.

Two fetch loops share one client:

  dns  IDLE -> REQUESTING -> SUCCESS | FAILED
       Single request with the first key. Any non-200 (429 included) fails the domain.

  url  FETCHING(page) -> ADVANCE | RATE_LIMITED | DONE | FAILED
       One request per page, keys used round-robin. An empty page ends pagination.
       429 retries the same page after RATE_SLEEP_FAST; every MAX_429_RETRIES
       consecutive 429s the wait escalates to RATE_SLEEP_LONG and the counter resets.
"""
import enum
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import requests

from auth.key_manager import KeyRotator, mask_key
from auth.session_handler import SessionHandler
from recon import __version__
from recon.console import log, verbose
from recon.errors import APIError, RateLimitedError, TerminalAPIError, TransientAPIError
from recon.results import ResultAggregator, output_path
from recon.settings import Settings

USER_AGENT = f"Sub-O-TX/{__version__} (+https://otx.alienvault.com)"


class FetchState(enum.Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCESS = "success"
    FETCHING = "fetching"
    ADVANCE = "advance"
    RATE_LIMITED = "rate_limited"
    DONE = "done"
    FAILED = "failed"

    @property
    def ok(self):
        return self in (FetchState.SUCCESS, FetchState.DONE)


@dataclass
class PassiveDnsRecord:
    hostname: Optional[str] = None

    @classmethod
    def from_json(cls, entry):
        if not isinstance(entry, dict):
            return cls()
        host = entry.get("hostname")
        return cls(host if isinstance(host, str) else None)


@dataclass
class UrlRecord:
    url: Optional[str] = None

    @classmethod
    def from_json(cls, entry):
        if not isinstance(entry, dict):
            return cls()
        url = entry.get("url")
        return cls(url if isinstance(url, str) else None)


@dataclass
class FetchResult:
    domain: str
    mode: str
    state: FetchState
    requests: int = 0
    count: int = 0
    path: Optional[Path] = None
    status: Optional[int] = None


def extract_hostnames(payload) -> List[Optional[str]]:
    """passive_dns[].hostname; anything unexpected yields no records."""
    if not isinstance(payload, dict):
        return []
    entries = payload.get("passive_dns")
    if not isinstance(entries, list):
        return []
    return [PassiveDnsRecord.from_json(e).hostname for e in entries]


def extract_urls(payload) -> List[Optional[str]]:
    """url_list[].url; anything unexpected yields no records."""
    if not isinstance(payload, dict):
        return []
    entries = payload.get("url_list")
    if not isinstance(entries, list):
        return []
    return [UrlRecord.from_json(e).url for e in entries]


def _json_or_empty(resp):
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_fields(body):
    err = body.get("error")
    detail = body.get("detail")
    return (err if isinstance(err, str) and err else None,
            detail if isinstance(detail, str) and detail else None)


class OTXClient:
    """GETs an OTX endpoint with a given key and classifies the response."""

    def __init__(self, handler: Optional[SessionHandler] = None, base_url=None, timeout=30):
        self.handler = handler if handler is not None else SessionHandler(user_agent=USER_AGENT, timeout=timeout)
        self.base_url = (base_url or Settings.base_url).rstrip("/")

    def passive_dns_url(self, domain):
        return f"{self.base_url}/indicators/domain/{domain}/passive_dns"

    def url_list_url(self, domain, limit, page):
        return f"{self.base_url}/indicators/domain/{domain}/url_list?limit={limit}&page={page}"

    def get_json(self, url, api_key):
        """Return the JSON object of a 200 response.

        Raises RateLimitedError on 429 and TerminalAPIError on every other status;
        transport failures are reported as status 0.
        """
        try:
            resp = self.handler.get(url, api_key=api_key)
        except requests.RequestException as e:
            raise TerminalAPIError(0, detail=str(e)) from e
        code = resp.status_code
        if code == 200:
            return _json_or_empty(resp)
        err, detail = _error_fields(_json_or_empty(resp))
        if code == 429:
            raise RateLimitedError(err, detail)
        raise TerminalAPIError(code, err, detail)

    def close(self):
        self.handler.close()


def _report_failure(exc, page=None):
    where = f" on page {page}" if page is not None else ""
    log(f"[ERROR] HTTP {exc.status:03d}{where}", "error")
    for msg in exc.messages():
        log(f"[ERROR] {msg}", "error")


def fetch_passive_dns(domain, client: OTXClient, rotator: KeyRotator, aggregator: ResultAggregator) -> FetchResult:
    """Single passive DNS lookup; hostnames go to ``aggregator``."""
    result = FetchResult(domain, "dns", FetchState.IDLE, path=aggregator.path)
    key = rotator.first()
    rotator.throttle(key)

    result.state = FetchState.REQUESTING
    url = client.passive_dns_url(domain)
    verbose(f"    [->] GET {url} (key {mask_key(key)})")
    result.requests += 1
    try:
        payload = client.get_json(url, key)
    except APIError as e:
        # dns mode never retries, 429 included
        _report_failure(e)
        result.state, result.status = FetchState.FAILED, e.status
        return result

    aggregator.add(extract_hostnames(payload))
    result.status = 200
    result.count = aggregator.finalize(domain)
    result.state = FetchState.SUCCESS
    return result


def fetch_url_list(domain, limit, client: OTXClient, rotator: KeyRotator, aggregator: ResultAggregator,
                   settings: Optional[Settings] = None,
                   sleep: Callable[[float], None] = time.sleep,
                   should_stop: Callable[[], bool] = lambda: False) -> FetchResult:
    """Walk url_list pages until an empty page, a hard error, or a stop request."""
    settings = settings or Settings()
    result = FetchResult(domain, "url", FetchState.FETCHING, path=aggregator.path)
    page = 1
    consecutive_429 = 0
    long_cooldowns = 0

    while result.state not in (FetchState.DONE, FetchState.FAILED):
        if should_stop():
            log(f"[!] Stopping pagination for {domain} at page {page}", "warn")
            result.state = FetchState.FAILED
            break

        key = rotator.next()
        rotator.throttle(key)
        url = client.url_list_url(domain, limit, page)
        verbose(f"    [->] GET {url} (key {mask_key(key)})")
        result.requests += 1
        result.state = FetchState.FETCHING

        try:
            payload = client.get_json(url, key)
        except TransientAPIError:
            result.state = FetchState.RATE_LIMITED
            consecutive_429 += 1
            if consecutive_429 >= settings.max_429_retries:
                long_cooldowns += 1
                if settings.max_429_cycles and long_cooldowns > settings.max_429_cycles:
                    log(f"[ERROR] Still rate limited after {settings.max_429_cycles} long cooldown(s); giving up on {domain}", "error")
                    result.state, result.status = FetchState.FAILED, 429
                    break
                log(f"[rate] 429 x{consecutive_429} - cooling {settings.rate_sleep_long:g}s", "warn")
                sleep(settings.rate_sleep_long)
                consecutive_429 = 0
            else:
                log(f"[rate] 429 - cooling {settings.rate_sleep_fast:g}s", "warn")
                sleep(settings.rate_sleep_fast)
            continue
        except TerminalAPIError as e:
            _report_failure(e, page)
            result.state, result.status = FetchState.FAILED, e.status
            break

        consecutive_429 = 0
        result.status = 200
        added = aggregator.add(extract_urls(payload))
        if not added:
            log("[done] No more pages", "ok")
            result.state = FetchState.DONE
            break

        log(f"[page {page}] {added} urls")
        result.state = FetchState.ADVANCE
        sleep(settings.success_sleep)
        page += 1

    result.count = aggregator.finalize(domain)
    return result


def process_domain(domain, mode, client: OTXClient, rotator: KeyRotator, settings: Settings,
                   output_dir="logs", limit=None,
                   sleep: Callable[[float], None] = time.sleep,
                   should_stop: Callable[[], bool] = lambda: False) -> FetchResult:
    """Run one mode for one domain; output file is truncated first."""
    aggregator = ResultAggregator(output_path(output_dir, domain, mode),
                                  label="hosts" if mode == "dns" else "urls").start()
    if mode == "dns":
        log(f"[dns] Domain: {domain}")
        return fetch_passive_dns(domain, client, rotator, aggregator)
    limit = limit or settings.page_limit
    log(f"[url] Domain: {domain}  limit: {limit}")
    return fetch_url_list(domain, limit, client, rotator, aggregator, settings=settings,
                          sleep=sleep, should_stop=should_stop)
