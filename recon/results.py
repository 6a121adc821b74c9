# recon/results.py
import os
from pathlib import Path
from typing import Iterable, List, Optional

from recon.console import log

OUTPUT_FILES = {
    "dns": "dns_data.txt",
    "url": "url_data.txt",
}

NULL_PLACEHOLDERS = {"null"}


def output_path(base_dir, domain, mode) -> Path:
    """logs/<domain>/dns_data.txt or logs/<domain>/url_data.txt"""
    try:
        filename = OUTPUT_FILES[mode]
    except KeyError:
        raise ValueError(f"unknown mode: {mode!r}") from None
    return Path(base_dir) / domain / filename


def _clean(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value in NULL_PLACEHOLDERS:
        return None
    return value


class ResultAggregator:
    """Collects records for one (domain, mode) run and writes them sorted and unique.

    ``start()`` truncates the output file so each run rewrites it from empty;
    nothing is written again until ``finalize()``.
    """

    def __init__(self, path, label="records"):
        self.path = Path(path)
        self.label = label
        self._items: List[str] = []

    def start(self):
        os.makedirs(self.path.parent, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8'):
            pass
        self._items = []
        return self

    def add(self, values: Iterable[Optional[str]]) -> int:
        added = 0
        for v in values:
            v = _clean(v)
            if v is None:
                continue
            self._items.append(v)
            added += 1
        return added

    def __len__(self):
        return len(self._items)

    def unique(self) -> List[str]:
        return sorted(set(self._items))

    def finalize(self, domain=None) -> int:
        entries = self.unique()
        os.makedirs(self.path.parent, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            for entry in entries:
                f.write(f"{entry}\n")
        if entries:
            log(f"[ok] {len(entries)} unique {self.label} -> {self.path}", "result")
        else:
            log(f"[warn] No {self.label} collected for {domain or self.path.parent.name}", "warn")
        return len(entries)
