"""
Binned histograms of one to three dimensions.

Bin contents are stored with one underflow and one overflow bin per axis, so
an axis with ``n`` bins has ``n + 2`` slots: slot 0 is underflow, slots
1..n are the regular bins and slot ``n + 1`` is overflow. Sums of squared
weights are tracked alongside the contents.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np


class Histogram:
    """A weighted histogram with variable bin edges.

    Parameters
    ----------
    name : str
        Key under which the histogram is written.
    edges : sequence of array-like
        Monotonically increasing bin edges, one array per axis.
    title : str
        Free-form title.
    axis_labels : sequence of str
        Label for each axis.
    """

    def __init__(
        self,
        name: str,
        edges: Sequence[Sequence[float]],
        title: str = "",
        axis_labels: Sequence[str] = (),
    ):
        if not 1 <= len(edges) <= 3:
            raise ValueError(f"Histogram must have 1 to 3 axes, got {len(edges)}.")

        self.edges = []
        for axis, axis_edges in enumerate(edges):
            axis_edges = np.asarray(axis_edges, dtype=float)
            if axis_edges.ndim != 1 or axis_edges.size < 2:
                raise ValueError(f"Axis {axis} needs at least two bin edges.")
            if np.any(np.diff(axis_edges) <= 0):
                raise ValueError(f"Bin edges of axis {axis} must be strictly increasing.")
            self.edges.append(axis_edges)

        self.name = name
        self.title = title
        self.axis_labels = list(axis_labels) + [""] * (len(self.edges) - len(axis_labels))

        shape = tuple(e.size + 1 for e in self.edges)
        self.values = np.zeros(shape, dtype=float)
        self.sumw2 = np.zeros(shape, dtype=float)
        self.entries = 0

    @property
    def ndim(self) -> int:
        return len(self.edges)

    def n_bins(self, axis: int = 0) -> int:
        return self.edges[axis].size - 1

    def find_bin(self, axis: int, x: float) -> int:
        """Slot of ``x`` on ``axis``: 0 for underflow, ``n + 1`` for overflow."""
        return int(np.searchsorted(self.edges[axis], x, side="right"))

    def find_bins(self, *coords: float) -> Tuple[int, ...]:
        if len(coords) != self.ndim:
            raise ValueError(f"Expected {self.ndim} coordinates, got {len(coords)}.")
        return tuple(self.find_bin(axis, x) for axis, x in enumerate(coords))

    def fill(self, *coords: float, weight: float = 1.0):
        slot = self.find_bins(*coords)
        self.values[slot] += weight
        self.sumw2[slot] += weight * weight
        self.entries += 1

    def get_bin_content(self, *slot: int) -> float:
        return float(self.values[slot])

    def set_bin_content(self, *args: float):
        """``set_bin_content(i[, j[, k]], value)``."""
        *slot, value = args
        self.values[tuple(int(i) for i in slot)] = value

    def get_bin_error(self, *slot: int) -> float:
        return float(np.sqrt(self.sumw2[slot]))

    def lookup(self, *coords: float) -> Optional[float]:
        """Content of the regular bin holding ``coords``; None outside the axes."""
        slot = self.find_bins(*coords)
        for axis, i in enumerate(slot):
            if i == 0 or i > self.n_bins(axis):
                return None
        return float(self.values[slot])

    def same_binning(self, other: "Histogram") -> bool:
        return self.ndim == other.ndim and all(
            a.size == b.size and np.allclose(a, b) for a, b in zip(self.edges, other.edges)
        )

    def add(self, other: "Histogram", scale: float = 1.0) -> "Histogram":
        """Add ``scale * other`` bin by bin, flow bins included."""
        if not self.same_binning(other):
            raise ValueError(f"Cannot add '{other.name}' to '{self.name}': binning differs.")
        self.values += scale * other.values
        self.sumw2 += scale * scale * other.sumw2
        self.entries += other.entries
        return self

    def scale(self, factor: float) -> "Histogram":
        self.values *= factor
        self.sumw2 *= factor * factor
        return self

    def clone(self, name: Optional[str] = None) -> "Histogram":
        copy = Histogram(name if name is not None else self.name, self.edges,
                         self.title, self.axis_labels)
        copy.values = self.values.copy()
        copy.sumw2 = self.sumw2.copy()
        copy.entries = self.entries
        return copy

    def reset(self):
        self.values[...] = 0.0
        self.sumw2[...] = 0.0
        self.entries = 0

    def integral(self, flow: bool = False) -> float:
        if flow:
            return float(self.values.sum())
        return float(self.to_numpy()[0].sum())

    def to_numpy(self, flow: bool = False) -> Tuple[np.ndarray, ...]:
        """``(values, edges...)`` in the layout ``np.histogramdd`` returns."""
        if flow:
            return (self.values.copy(), *self.edges)
        inner = tuple(slice(1, -1) for _ in self.edges)
        return (self.values[inner].copy(), *self.edges)

    @classmethod
    def from_numpy(
        cls,
        name: str,
        values: np.ndarray,
        edges: Sequence[Sequence[float]],
        sumw2: Optional[np.ndarray] = None,
        title: str = "",
        axis_labels: Sequence[str] = (),
    ) -> "Histogram":
        """Build a histogram from contents with or without flow bins."""
        hist = cls(name, edges, title, axis_labels)
        values = np.asarray(values, dtype=float)
        if values.shape == hist.values.shape:
            hist.values = values.copy()
        else:
            inner = tuple(slice(1, -1) for _ in hist.edges)
            hist.values[inner] = values
        if sumw2 is None:
            hist.sumw2 = np.abs(hist.values).copy()
        else:
            sumw2 = np.asarray(sumw2, dtype=float)
            if sumw2.shape == hist.sumw2.shape:
                hist.sumw2 = sumw2.copy()
            else:
                inner = tuple(slice(1, -1) for _ in hist.edges)
                hist.sumw2[inner] = sumw2
        return hist

    def __repr__(self) -> str:
        bins = "x".join(str(self.n_bins(axis)) for axis in range(self.ndim))
        return f"Histogram(name={self.name!r}, bins={bins}, integral={self.integral(flow=True):.6g})"
