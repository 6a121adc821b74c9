# auth/key_manager.py
import os
import time
from typing import Callable, Dict, List, Sequence, Union

from recon.errors import ConfigError


def load_api_keys(source: Union[str, Sequence[str], None]) -> List[str]:
    """Load API keys from a literal value, a key file, or an already split list.

    Key files hold one key per line; blank lines and lines starting with '#' are
    skipped and trailing CR characters are stripped.
    """
    keys: List[str] = []
    if isinstance(source, (list, tuple)):
        keys = [str(k).strip() for k in source if str(k).strip()]
    elif source and os.path.isfile(source):
        try:
            with open(source, 'r', encoding='utf-8', errors='ignore') as f:
                for line in f:
                    line = line.rstrip('\r\n').strip()
                    if not line or line.startswith('#'):
                        continue
                    keys.append(line)
        except OSError as e:
            raise ConfigError(f"Cannot read key file {source}: {e}") from e
    elif source and source.strip():
        keys.append(source.strip())

    if not keys:
        raise ConfigError(f"No API key(s) loaded from: {source if source else '<empty>'}")
    return keys


class KeyRotator:
    """Hands out API keys and spaces out reuse of each individual key.

    DNS lookups always use the first key; URL pages walk the keys round-robin.
    The minimum gap is tracked per key, so two different keys can be used
    back to back without waiting.
    """

    def __init__(self, keys: Sequence[str], min_gap: float = 3,
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep):
        if not keys:
            raise ConfigError("KeyRotator needs at least one API key")
        self.keys = list(keys)
        self.min_gap = min_gap
        self._clock = clock
        self._sleep = sleep
        self._index = 0
        self._last_used: Dict[str, float] = {}

    def first(self) -> str:
        return self.keys[0]

    def next(self) -> str:
        key = self.keys[self._index]
        self._index = (self._index + 1) % len(self.keys)
        return key

    def throttle(self, key: str) -> float:
        """Block until ``key`` may be reused, then mark it as used now.

        Returns the number of seconds slept.
        """
        waited = 0.0
        last = self._last_used.get(key)
        if last is not None:
            since = self._clock() - last
            if since < self.min_gap:
                waited = self.min_gap - since
                self._sleep(waited)
        self._last_used[key] = self._clock()
        return waited

    def last_used(self, key: str):
        return self._last_used.get(key)


def mask_key(key: str) -> str:
    """Short form of a key for log lines."""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"
