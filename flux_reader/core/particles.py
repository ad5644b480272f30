"""
Named, PDG-coded particle categories.

Two families are defined: neutrino flavors (``NuFlav``) and neutrino parents
(``Parent``). Parents exist in a sign-sensitive form (mu+/mu-, pi+/pi-, K+/K-)
and in a sign-folded form (mu, pi, K) for runs that ignore the PDG sign.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, TypeVar, Union


@dataclass(frozen=True)
class ParticleParam:
    """A particle name and PDG code. Equal when both fields match."""

    name: str
    pdg: int


@dataclass(frozen=True)
class NuFlav(ParticleParam):
    """A neutrino flavor."""


@dataclass(frozen=True)
class Parent(ParticleParam):
    """A neutrino parent (or ancestor) species."""


# Preset neutrino flavors
NUE = NuFlav("nue", +12)
ANUE = NuFlav("anue", -12)
NUMU = NuFlav("numu", +14)
ANUMU = NuFlav("anumu", -14)
NUTAU = NuFlav("nutau", +16)
ANUTAU = NuFlav("anutau", -16)

# Preset parents, PDG sign considered
MU_PLUS = Parent("muplus", -13)
MU_MINUS = Parent("muminus", +13)
PI_PLUS = Parent("piplus", +211)
PI_MINUS = Parent("piminus", -211)
K_PLUS = Parent("Kplus", +321)
K_MINUS = Parent("Kminus", -321)

# Preset parents, PDG sign ignored
MUON = Parent("mu", 13)
PION = Parent("pi", 211)
KAON = Parent("K", 321)
K_LONG = Parent("KL", 130)


def all_nu_flavs() -> List[NuFlav]:
    """Return every neutrino flavor, antineutrinos included."""
    return [NUE, ANUE, NUMU, ANUMU, NUTAU, ANUTAU]


def all_parents(sign_sensitive: bool = True) -> List[Parent]:
    """Return every preset parent for the given sign sensitivity.

    K-long is always included last.
    """
    if sign_sensitive:
        parents = [MU_PLUS, MU_MINUS, PI_PLUS, PI_MINUS, K_PLUS, K_MINUS]
    else:
        parents = [MUON, PION, KAON]
    parents.append(K_LONG)
    return parents


P = TypeVar("P", bound=ParticleParam)
ParticleKey = Union[int, str, ParticleParam]


def _matches(particle: ParticleParam, key: ParticleKey) -> bool:
    if isinstance(key, ParticleParam):
        return particle == key
    if isinstance(key, str):
        return particle.name == key
    return particle.pdg == key


def remove_particles(particles: Sequence[P], key: ParticleKey) -> List[P]:
    """Return ``particles`` without every entry matching ``key``.

    Parameters
    ----------
    particles : Sequence[ParticleParam]
        Collection to filter.
    key : int, str or ParticleParam
        PDG code, name, or full (name, PDG) category to remove.

    Returns
    -------
    list
        Filtered copy; unchanged when nothing matches.
    """
    return [p for p in particles if not _matches(p, key)]


def find_by_pdg(particles: Sequence[P], pdg: int) -> int:
    """Position of the first particle with ``pdg``, or -1."""
    for i, particle in enumerate(particles):
        if particle.pdg == pdg:
            return i
    return -1
