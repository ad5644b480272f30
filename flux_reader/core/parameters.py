"""
The parameter set that slices a flux into histograms.

A ``Parameters`` object holds four ordered collections (neutrino flavors,
parents, cross-section labels and detectors). Their cross product defines the
histograms a spectrum owns; every combination maps to a master index through
``Indices``.
"""

from __future__ import annotations

import copy
from typing import AbstractSet, Iterator, List, Optional, Sequence

from .. import config
from .constants import NAME_SEP, NO_XSEC
from .data_classes import Detector
from .indices import Indices
from .particles import (
    NuFlav,
    Parent,
    ParticleKey,
    all_nu_flavs,
    all_parents,
    find_by_pdg,
    remove_particles,
)


class Parameters:
    """Ordered flavors, parents, cross sections and detectors.

    Parameters
    ----------
    sign_sensitive : bool
        When False parents are matched by the absolute value of their PDG.
    verbose : bool
        Print a message when a flavor or parent lookup misses.
    interaction_types : set of str, optional
        Labels accepted by ``add_xsec``. Defaults to
        ``config.KNOWN_INTERACTION_TYPES``.
    """

    def __init__(
        self,
        sign_sensitive: bool = True,
        verbose: bool = True,
        interaction_types: Optional[AbstractSet[str]] = None,
    ):
        self.sign_sensitive = sign_sensitive
        self.verbose = verbose
        self.ancestor_par = True
        self.interaction_types = (
            frozenset(interaction_types)
            if interaction_types is not None
            else config.KNOWN_INTERACTION_TYPES
        )

        self.nu_flavs: List[NuFlav] = []
        self.parents: List[Parent] = []
        self.xsecs: List[str] = []
        self.detectors: List[Detector] = []
        self._indices = Indices()

        self.set_defaults(sign_sensitive)
        self.remove_nu_taus()

    @classmethod
    def from_components(
        cls,
        nu_flavs: Sequence[NuFlav],
        parents: Sequence[Parent],
        xsecs: Sequence[str],
        detectors: Sequence[Detector],
        sign_sensitive: bool = True,
        verbose: bool = True,
    ) -> "Parameters":
        """Install the four collections directly, skipping registry checks."""
        params = cls(sign_sensitive=sign_sensitive, verbose=verbose)
        params.clear_all()
        params.nu_flavs = list(nu_flavs)
        params.parents = list(parents)
        params.xsecs = list(xsecs)
        params.detectors = [copy.copy(det) for det in detectors]
        params._update_indices()
        return params

    # ------------------------------------------------------------------
    # Sizes and index bookkeeping
    # ------------------------------------------------------------------

    @property
    def n_flav(self) -> int:
        return len(self.nu_flavs)

    @property
    def n_par(self) -> int:
        return len(self.parents)

    @property
    def n_xsec(self) -> int:
        return len(self.xsecs)

    @property
    def n_det(self) -> int:
        return len(self.detectors)

    @property
    def is_sign_sensitive(self) -> bool:
        return self.sign_sensitive

    def _update_indices(self):
        self._indices.n_flav = self.n_flav
        self._indices.n_par = self.n_par
        self._indices.n_xsec = self.n_xsec
        self._indices.n_det = self.n_det

    def new_indices(self) -> Indices:
        """A cursor at master 0 over the current bases."""
        return Indices(self.n_flav, self.n_par, self.n_xsec, self.n_det)

    def max_master(self, i_det: Optional[int] = None) -> int:
        """Number of combinations, or the end of detector ``i_det``'s block."""
        if i_det is None:
            return self.n_flav * self.n_par * self.n_xsec * self.n_det
        return self.n_flav * self.n_par * self.n_xsec * (i_det + 1)

    def __iter__(self) -> Iterator[Indices]:
        cursor = self.new_indices()
        while not cursor.exhausted and cursor.size > 0:
            yield copy.copy(cursor)
            cursor.increment()

    def __len__(self) -> int:
        return self.max_master()

    def snapshot(self) -> "Parameters":
        """Independent copy with the cursor reset to master 0."""
        clone = copy.copy(self)
        clone.nu_flavs = list(self.nu_flavs)
        clone.parents = list(self.parents)
        clone.xsecs = list(self.xsecs)
        clone.detectors = [copy.copy(det) for det in self.detectors]
        clone._indices = self.new_indices()
        return clone

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_detector(self, det: Detector):
        if any(d.name == det.name for d in self.detectors):
            print(f"[warning] Detector name '{det.name}' already exists for another detector.")
            return
        self.detectors.append(copy.copy(det))
        self._update_indices()

    def add_parent(self, parent: Parent):
        if find_by_pdg(self.parents, parent.pdg) != -1:
            print(f"[warning] Parent PDG {parent.pdg} is already included as {parent.name}.")
            return
        self.parents.append(parent)
        self._update_indices()

    def add_xsec(self, xsec: str):
        if xsec in self.xsecs:
            print(f"[warning] Cross section '{xsec}' is already included.")
            return
        if xsec != NO_XSEC and xsec not in self.interaction_types:
            valid = ", ".join(sorted(self.interaction_types))
            print(f"[warning] Cross section '{xsec}' is not valid. The following are valid: {NO_XSEC}, {valid}")
            return
        self.xsecs.append(xsec)
        self._update_indices()

    def remove_detector(self, name: str):
        self.detectors = [d for d in self.detectors if d.name != name]
        self._update_indices()

    def remove_nu_flav(self, key: ParticleKey):
        self.nu_flavs = remove_particles(self.nu_flavs, key)
        self._update_indices()

    def remove_nu_taus(self):
        self.remove_nu_flav(+16)
        self.remove_nu_flav(-16)

    def remove_parent(self, key: ParticleKey):
        self.parents = remove_particles(self.parents, key)
        self._update_indices()

    def remove_xsec(self, xsec: str):
        self.xsecs = [x for x in self.xsecs if x != xsec]
        self._update_indices()

    def reset_nu_flavs(self):
        self.nu_flavs = all_nu_flavs()
        self._update_indices()

    def set_ancestor_par(self):
        """Split by the direct neutrino parent."""
        self.ancestor_par = True

    def set_ancestor_tgt(self):
        """Split by the ancestor that exited the target."""
        self.ancestor_par = False

    def set_defaults(self, sign_sensitive: bool = True):
        """All flavors, all parents for ``sign_sensitive`` and the default cross sections.

        Detectors are left untouched.
        """
        self.sign_sensitive = sign_sensitive
        self.nu_flavs = all_nu_flavs()
        self.parents = all_parents(sign_sensitive)
        self.xsecs = list(config.DEFAULT_XSECS)
        self._update_indices()

    def set_det_uses(self, name: str, uses: int):
        for det in self.detectors:
            if det.name == name:
                det.uses = uses

    def clear_all(self):
        self.nu_flavs = []
        self.parents = []
        self.xsecs = []
        self.detectors = []
        self._indices = Indices()

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def current_nu_flav(self) -> int:
        return self._indices.i_flav

    def current_parent(self) -> int:
        return self._indices.i_par

    def current_xsec(self) -> int:
        return self._indices.i_xsec

    def current_det(self) -> int:
        return self._indices.i_det

    def current_master(self) -> int:
        return self._indices.master

    def find_nu_flav(self, pdg: int) -> int:
        """Position of the flavor with ``pdg``, or -1."""
        return find_by_pdg(self.nu_flavs, pdg)

    def find_parent(self, pdg: int) -> int:
        """Position of the parent with ``pdg``, or -1."""
        return find_by_pdg(self.parents, pdg)

    def set_current_nu_flav(self, pdg: int) -> bool:
        i_flav = self.find_nu_flav(pdg)
        if i_flav == -1:
            if self.verbose:
                print(f"[info] Could not find {pdg} in flavor list.")
            return False
        self._indices.i_flav = i_flav
        return True

    def set_current_parent(self, pdg: int) -> bool:
        i_par = self.find_parent(pdg)
        if i_par == -1:
            if self.verbose:
                print(f"[info] Could not find {pdg} in parent list.")
            return False
        self._indices.i_par = i_par
        return True

    def set_current_xsec(self, i_xsec: int) -> bool:
        if i_xsec < 0 or i_xsec >= self.n_xsec:
            if self.verbose:
                print("[warning] Input cross section index is out of range.")
            return False
        self._indices.i_xsec = i_xsec
        return True

    def set_current_det(self, i_det: int) -> bool:
        if i_det < 0 or i_det >= self.n_det:
            if self.verbose:
                print("[warning] Input detector index is out of range.")
            return False
        self._indices.i_det = i_det
        return True

    def set_indices(self, master: int) -> bool:
        """Move the cursor to ``master``. False when out of range."""
        self._update_indices()
        if not self._indices.set_master(master):
            if self.verbose:
                print(f"[warning] Master index {master} is out of range.")
            return False
        return True

    def decompose(self, master: int) -> Optional[Indices]:
        """Digits of ``master`` as a fresh ``Indices``, or None when out of range."""
        indices = self.new_indices()
        if not indices.set_master(master):
            return None
        return indices

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def name_tag(self, master: int) -> str:
        """``flav_parent_xsec_det`` for ``master``; empty when out of range."""
        indices = self.decompose(master)
        if indices is None:
            return ""
        return NAME_SEP.join((
            self.nu_flavs[indices.i_flav].name,
            self.parents[indices.i_par].name,
            self.xsecs[indices.i_xsec],
            self.detectors[indices.i_det].name,
        ))

    def get_detector(self, i_det: int) -> Detector:
        return self.detectors[i_det]

    def get_nu_flav(self, i_flav: int) -> NuFlav:
        return self.nu_flavs[i_flav]

    def get_parent(self, i_par: int) -> Parent:
        return self.parents[i_par]

    def get_det_name(self, i_det: int) -> str:
        if i_det < 0 or i_det >= self.n_det:
            if self.verbose:
                print("[warning] Input index to get_det_name is out of range.")
            return ""
        return self.detectors[i_det].name

    def get_nu_flav_pdg(self, i_flav: int) -> int:
        if i_flav < 0 or i_flav >= self.n_flav:
            if self.verbose:
                print("[warning] Input index to get_nu_flav_pdg is out of range.")
            return -1
        return self.nu_flavs[i_flav].pdg

    def get_parent_pdg(self, i_par: int) -> int:
        if i_par < 0 or i_par >= self.n_par:
            if self.verbose:
                print("[warning] Input index to get_parent_pdg is out of range.")
            return -1
        return self.parents[i_par].pdg

    def get_xsec_name(self, i_xsec: int) -> str:
        if i_xsec < 0 or i_xsec >= self.n_xsec:
            if self.verbose:
                print("[warning] Input index to get_xsec_name is out of range.")
            return ""
        return self.xsecs[i_xsec]

    def find_detector(self, name: str) -> int:
        for i_det, det in enumerate(self.detectors):
            if det.name == name:
                return i_det
        return -1

    def describe(self) -> str:
        lines = [
            f"Neutrino flavors: {', '.join(f.name for f in self.nu_flavs)}",
            f"Parents: {', '.join(p.name for p in self.parents)}",
            f"Cross sections: {', '.join(self.xsecs)}",
            f"Detectors: {', '.join(d.name for d in self.detectors)}",
            f"Split by: {'direct parent' if self.ancestor_par else 'target-exit ancestor'}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Parameters(n_flav={self.n_flav}, n_par={self.n_par}, "
            f"n_xsec={self.n_xsec}, n_det={self.n_det}, "
            f"sign_sensitive={self.sign_sensitive}, ancestor_par={self.ancestor_par})"
        )
