# recon/settings.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from recon.errors import ConfigError

DEFAULT_BASE_URL = "https://otx.alienvault.com/api/v1"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "provider-config.yaml"


@dataclass
class Settings:
    """Runtime tunables. Every field can be overridden from the environment."""

    per_key_gap: float = 3
    success_sleep: float = 1.0
    rate_sleep_fast: float = 30
    rate_sleep_long: float = 180
    max_429_retries: int = 5
    max_429_cycles: int = 0  # 0 = retry rate limits forever
    page_limit: int = 100
    request_timeout: float = 30
    no_banner: bool = False
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            per_key_gap=_number(env, "PER_KEY_GAP", cls.per_key_gap),
            success_sleep=_number(env, "SUCCESS_SLEEP", cls.success_sleep),
            rate_sleep_fast=_number(env, "RATE_SLEEP_FAST", cls.rate_sleep_fast),
            rate_sleep_long=_number(env, "RATE_SLEEP_LONG", cls.rate_sleep_long),
            max_429_retries=max(1, _integer(env, "MAX_429_RETRIES", cls.max_429_retries)),
            max_429_cycles=_integer(env, "MAX_429_CYCLES", cls.max_429_cycles),
            page_limit=max(1, _integer(env, "PAGE_LIMIT", cls.page_limit)),
            request_timeout=_number(env, "REQUEST_TIMEOUT", cls.request_timeout),
            no_banner=env.get("NO_BANNER", "0").strip() == "1",
            base_url=(env.get("OTX_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        )


def _raw(env, name):
    val = env.get(name)
    if val is None or not val.strip():
        return None
    return val.strip()


def _number(env, name, default):
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        val = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if val < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return val


def _integer(env, name, default):
    raw = _raw(env, name)
    if raw is None:
        return default
    if not raw.isdigit():
        raise ConfigError(f"{name} must be a non-negative integer, got {raw!r}")
    return int(raw)


def load_provider_config(path=None) -> Dict[str, object]:
    """Load API keys from provider-config.yaml.

    Returns an empty dict when the file is missing or invalid.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8', errors='ignore') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"[!] Failed to load provider config: {e}")
        return {}
    if not isinstance(raw, dict):
        print(f"[!] Ignoring provider config {config_path}: expected a mapping")
        return {}
    # Normalize: empty lists -> [], blank strings -> ''
    norm = {}
    for k, v in raw.items():
        if v is None:
            continue
        if isinstance(v, list):
            norm[k] = [str(t).strip() for t in v if str(t).strip()]
        elif isinstance(v, str):
            norm[k] = v.strip()
        else:
            norm[k] = v
    return norm


def resolve_api_source(cli_value, environ=None, config=None):
    """Pick where API keys come from.

    Precedence: -k value, OTX_API_KEY, then the ``otx`` entry of the provider config.
    Returns a string (literal key or key file path), a list of keys, or None.
    """
    if cli_value is not None:
        return cli_value
    env = os.environ if environ is None else environ
    val = env.get("OTX_API_KEY")
    if val and val.strip():
        return val.strip()
    raw = (config or {}).get("otx")
    if isinstance(raw, (list, tuple)):
        keys = [str(t).strip() for t in raw if str(t).strip()]
        return keys or None
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None
