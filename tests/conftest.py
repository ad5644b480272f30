"""
Shared fixtures for the flux reader tests.
"""

import pytest

from flux_reader.core.data_classes import Detector, FluxEvent, NuRay
from flux_reader.core.parameters import Parameters
from flux_reader.core.particles import Parent


class RecordingFactory:
    """Cross-section factory returning a flat curve and recording each request."""

    def __init__(self, value=1.0):
        self.value = value
        self.calls = []

    def __call__(self, pdg, target, label):
        self.calls.append((pdg, target, label))
        return lambda energy: self.value


@pytest.fixture
def xsec_factory():
    return RecordingFactory()


@pytest.fixture
def two_flavor_params():
    """nue and numu from muons, NoXSec only, one detector D1 with one use."""
    params = Parameters(verbose=False)
    for pdg in (-12, -14):
        params.remove_nu_flav(pdg)
    for parent in list(params.parents):
        params.remove_parent(parent)
    params.add_parent(Parent("muon", 13))
    for xsec in list(params.xsecs):
        params.remove_xsec(xsec)
    params.add_xsec("NoXSec")
    params.add_detector(Detector("D1", "CH2", uses=1))
    return params


def _make_event(ntype=12, ptype=13, energy=2.0, weight=1.0, nimpwt=1.0, n_rays=1):
    return FluxEvent(
        ntype=ntype,
        ptype=ptype,
        nimpwt=nimpwt,
        nurays=[NuRay(energy, weight) for _ in range(n_rays)],
    )


@pytest.fixture
def make_event():
    """Factory for single-decay events with identical rays."""
    return _make_event
