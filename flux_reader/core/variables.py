"""
Variables and weights evaluated per flux entry and ray.

A ``Var`` maps ``(event, i_ray)`` to a number to histogram. A ``Weight`` maps
``(w, event, i_ray, ext_weights)`` to the fill weight, where ``w`` is the
standard weight (importance weight * ray weight * cross section * unit
correction). Both declare the input branches they read so the reader can
request only what is needed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable

from .data_classes import FluxEvent

VarFunc = Callable[[FluxEvent, int], float]
WeightFunc = Callable[[float, FluxEvent, int, Any], float]


@dataclass(frozen=True)
class Var:
    """A quantity computed from one flux entry and ray index."""

    func: VarFunc
    branches: FrozenSet[str] = field(default_factory=frozenset)
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "branches", frozenset(self.branches))

    def __call__(self, event: FluxEvent, i_ray: int) -> float:
        return self.func(event, i_ray)


@dataclass(frozen=True)
class Weight:
    """A fill weight built from the standard weight ``w``."""

    func: WeightFunc
    branches: FrozenSet[str] = field(default_factory=frozenset)
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "branches", frozenset(self.branches))

    def __call__(self, w: float, event: FluxEvent, i_ray: int, ext_weights: Any = None) -> float:
        return self.func(w, event, i_ray, ext_weights)


def make_var(branches: Iterable[str], name: str = "") -> Callable[[VarFunc], Var]:
    """Decorator turning a function of ``(event, i_ray)`` into a ``Var``."""
    def wrap(func: VarFunc) -> Var:
        return Var(func, frozenset(branches), name or func.__name__)
    return wrap


def make_weight(branches: Iterable[str], name: str = "") -> Callable[[WeightFunc], Weight]:
    """Decorator turning a function of ``(w, event, i_ray, ext)`` into a ``Weight``."""
    def wrap(func: WeightFunc) -> Weight:
        return Weight(func, frozenset(branches), name or func.__name__)
    return wrap


# =============================================================================
# Preset variables
# =============================================================================

@make_var({"nuray.E"}, name="energy")
def ENERGY(event: FluxEvent, i_ray: int) -> float:
    """Neutrino energy toward the ray's detector (GeV)."""
    return event.nurays[i_ray].energy


@make_var({"pdpx", "pdpy"}, name="pt")
def PT(event: FluxEvent, i_ray: int) -> float:
    """Parent momentum transverse to the beam at decay (GeV)."""
    return math.hypot(event.pdpx, event.pdpy)


@make_var({"pdpz"}, name="pz")
def PZ(event: FluxEvent, i_ray: int) -> float:
    """Parent momentum along the beam at decay (GeV)."""
    return event.pdpz


@make_var({"tpx", "tpy"}, name="target_exit_pt")
def TARGET_EXIT_PT(event: FluxEvent, i_ray: int) -> float:
    """Transverse momentum of the ancestor leaving the target (GeV)."""
    return math.hypot(event.tpx, event.tpy)


@make_var({"tpz"}, name="target_exit_pz")
def TARGET_EXIT_PZ(event: FluxEvent, i_ray: int) -> float:
    """Longitudinal momentum of the ancestor leaving the target (GeV)."""
    return event.tpz


# =============================================================================
# Preset weights
# =============================================================================

@make_weight((), name="default")
def DEFAULT_WEIGHT(w: float, event: FluxEvent, i_ray: int, ext_weights: Any) -> float:
    return w


@make_weight((), name="none")
def NO_WEIGHT(w: float, event: FluxEvent, i_ray: int, ext_weights: Any) -> float:
    return 1.0


def constant_weight(c: float) -> Weight:
    """Every fill gets weight ``c``."""
    return Weight(lambda w, event, i_ray, ext_weights: c, frozenset(), f"constant_{c:g}")


@make_weight({"ancestor.stoppx", "ancestor.stoppy", "ancestor.stoppz"}, name="ext_pt_pz")
def EXT_WEIGHT_BY_PT_PZ(w: float, event: FluxEvent, i_ray: int, ext_weights: Any) -> float:
    """Scale ``w`` by an external 2D (pT, pz) table keyed on the primary ancestor.

    ``ext_weights`` must be a 2D ``Histogram``. Entries outside its axes
    get weight 0.
    """
    if not event.ancestors:
        return 0.0
    primary = event.ancestors[0]
    content = ext_weights.lookup(math.hypot(primary.stoppx, primary.stoppy), primary.stoppz)
    if content is None:
        return 0.0
    return w * content
