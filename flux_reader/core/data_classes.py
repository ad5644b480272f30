"""
Data classes for the flux reader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass
class Detector:
    """A detector that neutrino rays are pointed toward.

    ``position`` and ``size`` are in cm, in detector coordinates. ``size`` is
    the full extent of the box; rays are smeared within +/- ``half_size``.
    ``uses`` is the number of times each ray is resampled through the volume.
    """

    name: str
    target: str
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    size: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    uses: int = 1

    def __post_init__(self):
        self.position = tuple(float(v) for v in self.position)
        self.size = tuple(float(v) for v in self.size)
        if len(self.position) != 3:
            self.position = (0.0, 0.0, 0.0)
        if len(self.size) != 3:
            self.size = (0.0, 0.0, 0.0)

    def __lt__(self, other: "Detector") -> bool:
        return self.name < other.name

    @property
    def half_size(self) -> Tuple[float, float, float]:
        return tuple(s / 2.0 for s in self.size)

    @property
    def n_rays(self) -> int:
        """Number of ray slots this detector occupies (at least one)."""
        return max(self.uses, 1)

    def describe(self) -> str:
        return (
            f"Detector name: {self.name}\n"
            f"Nuclear target: {self.target}\n"
            f"Coordinates: ({self.position[0]}, {self.position[1]}, {self.position[2]})\n"
            f"Size: ({self.size[0]}, {self.size[1]}, {self.size[2]})\n"
            f"Number of times to smear neutrino rays through detector: {self.uses}"
        )


@dataclass
class NuRay:
    """Neutrino energy and weight toward one detector location."""

    energy: float = 0.0  # GeV
    weight: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0


@dataclass
class Ancestor:
    """One entry of the neutrino ancestry chain."""

    pdg: int = 0
    stoppx: float = 0.0
    stoppy: float = 0.0
    stoppz: float = 0.0


@dataclass
class FluxEvent:
    """A single flux entry: one simulated decay producing a neutrino."""

    ntype: int  # neutrino PDG
    ptype: int  # direct parent PDG
    nimpwt: float = 1.0  # importance weight
    nurays: List[NuRay] = field(default_factory=list)
    # Decay vertex (cm) and parent momentum at decay (GeV)
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    pdpx: float = 0.0
    pdpy: float = 0.0
    pdpz: float = 0.0
    # Parent production momentum and energy (GeV)
    ppdxdz: float = 0.0
    ppdydz: float = 0.0
    pppz: float = 0.0
    ppenergy: float = 0.0
    # Muon parent momentum and energy, filled for muon decays (GeV)
    muparpx: float = 0.0
    muparpy: float = 0.0
    muparpz: float = 0.0
    mupare: float = 0.0
    necm: float = 0.0  # neutrino energy in the parent rest frame (GeV)
    # Ancestor leaving the target
    tptype: int = 0
    tpx: float = 0.0
    tpy: float = 0.0
    tpz: float = 0.0
    ancestors: List[Ancestor] = field(default_factory=list)

    def ancestor_pdg(self, by_parent: bool = True) -> int:
        """PDG of the direct parent, or of the ancestor exiting the target."""
        return self.ptype if by_parent else self.tptype

    def ensure_nurays(self, n: int):
        """Grow the ray list so that indices below ``n`` are valid."""
        while len(self.nurays) < n:
            self.nurays.append(NuRay())

    @property
    def decay_vertex(self) -> np.ndarray:
        return np.array([self.vx, self.vy, self.vz], dtype=float)

    @property
    def parent_momentum(self) -> np.ndarray:
        return np.array([self.pdpx, self.pdpy, self.pdpz], dtype=float)

