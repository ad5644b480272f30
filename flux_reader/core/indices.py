"""
Mixed-radix enumeration over (flavor, parent, cross section, detector).

The flavor digit varies fastest and the detector digit slowest, so the master
index is::

    master = i_flav + i_par*n_flav + i_xsec*n_flav*n_par + i_det*n_flav*n_par*n_xsec
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Indices:
    """Digits and bases of the four-dimensional index."""

    n_flav: int = 0
    n_par: int = 0
    n_xsec: int = 0
    n_det: int = 0
    i_flav: int = 0
    i_par: int = 0
    i_xsec: int = 0
    i_det: int = 0

    @property
    def master(self) -> int:
        return (
            self.i_flav
            + self.i_par * self.n_flav
            + self.i_xsec * self.n_flav * self.n_par
            + self.i_det * self.n_flav * self.n_par * self.n_xsec
        )

    @property
    def size(self) -> int:
        return self.n_flav * self.n_par * self.n_xsec * self.n_det

    @property
    def exhausted(self) -> bool:
        return self.i_det >= self.n_det

    def increment(self) -> "Indices":
        """Advance the flavor digit with carry.

        Once the detector digit reaches ``n_det`` further increments do
        nothing, so ``master`` never exceeds ``size``.
        """
        if self.exhausted:
            return self
        self.i_flav += 1
        if self.i_flav >= self.n_flav:
            self.i_flav = 0
            self.i_par += 1
        if self.i_par >= self.n_par:
            self.i_par = 0
            self.i_xsec += 1
        if self.i_xsec >= self.n_xsec:
            self.i_xsec = 0
            self.i_det += 1
        return self

    def reset(self) -> "Indices":
        self.i_flav = self.i_par = self.i_xsec = self.i_det = 0
        return self

    def set_master(self, master: int) -> bool:
        """Decompose ``master`` into digits. Returns False when out of range."""
        if master < 0 or master >= self.size:
            return False
        stride_det = self.n_flav * self.n_par * self.n_xsec
        stride_xsec = self.n_flav * self.n_par
        self.i_det, rest = divmod(master, stride_det)
        self.i_xsec, rest = divmod(rest, stride_xsec)
        self.i_par, self.i_flav = divmod(rest, self.n_flav)
        return True

    def with_bases(self) -> "Indices":
        """Fresh cursor at master 0 with the same bases."""
        return Indices(self.n_flav, self.n_par, self.n_xsec, self.n_det)
