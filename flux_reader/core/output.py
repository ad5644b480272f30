"""
In-memory directory tree of histograms.

The tree mirrors the layout of the ROOT output file: the top level holds the
``TotalPOT`` histogram, one directory per spectrum and a few string entries
(the manifest); each spectrum directory holds either one subdirectory per
detector or, for detector-correlated spectra, the histograms directly.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple, Union

from .histogram import Histogram

Entry = Union[Histogram, "HistogramDirectory", str]


class HistogramDirectory:
    """A named, ordered container of histograms, strings and subdirectories."""

    def __init__(self, name: str = ""):
        self.name = name
        self._entries: Dict[str, Entry] = {}

    def __contains__(self, key: str) -> bool:
        try:
            self.get(key)
        except KeyError:
            return False
        return True

    def __getitem__(self, key: str) -> Entry:
        return self.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, path: str) -> Entry:
        """Entry at ``path``; nested entries are separated by ``/``."""
        head, _, rest = path.strip("/").partition("/")
        entry = self._entries[head]
        if not rest:
            return entry
        if not isinstance(entry, HistogramDirectory):
            raise KeyError(f"'{head}' in '{self.name}' is not a directory.")
        return entry.get(rest)

    def mkdir(self, name: str) -> "HistogramDirectory":
        """Return subdirectory ``name``, creating it when absent."""
        existing = self._entries.get(name)
        if isinstance(existing, HistogramDirectory):
            return existing
        if existing is not None:
            raise ValueError(f"'{name}' already exists in '{self.name}' and is not a directory.")
        subdir = HistogramDirectory(name)
        self._entries[name] = subdir
        return subdir

    def write(self, hist: Histogram, name: Optional[str] = None):
        """Store ``hist`` under ``name`` (its own name by default), replacing any entry."""
        self._entries[name if name is not None else hist.name] = hist

    def write_string(self, name: str, value: str):
        self._entries[name] = value

    def histograms(self) -> List[Histogram]:
        return [e for e in self._entries.values() if isinstance(e, Histogram)]

    def histogram_names(self) -> List[str]:
        return [k for k, e in self._entries.items() if isinstance(e, Histogram)]

    def subdirectories(self) -> List["HistogramDirectory"]:
        return [e for e in self._entries.values() if isinstance(e, HistogramDirectory)]

    def strings(self) -> Dict[str, str]:
        return {k: e for k, e in self._entries.items() if isinstance(e, str)}

    def walk(self, prefix: str = "") -> Iterator[Tuple[str, Entry]]:
        """Yield ``(path, entry)`` for every non-directory entry, depth first."""
        for key, entry in self._entries.items():
            path = f"{prefix}/{key}" if prefix else key
            if isinstance(entry, HistogramDirectory):
                yield from entry.walk(path)
            else:
                yield path, entry

    def __repr__(self) -> str:
        return (
            f"HistogramDirectory(name={self.name!r}, "
            f"histograms={len(self.histograms())}, subdirectories={len(self.subdirectories())})"
        )
