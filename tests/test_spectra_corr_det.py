"""
Unit tests for detector-correlated spectra.
"""

import numpy as np
import pytest

from flux_reader.core.data_classes import Detector, FluxEvent, NuRay
from flux_reader.core.output import HistogramDirectory
from flux_reader.core.spectra_corr_det import SpectraCorrDet
from flux_reader.core.variables import ENERGY, NO_WEIGHT


@pytest.fixture
def corr_params(two_flavor_params):
    two_flavor_params.add_detector(Detector("D2", "CH2"))
    return two_flavor_params


def make_corr(params, factory, bins=(0.0, 10.0)):
    return SpectraCorrDet(params, "corr", "D1", "D2", "E", list(bins), ENERGY,
                          weight=NO_WEIGHT, xsec_factory=factory)


class TestConstruction:
    """Detector lookup and naming"""

    def test_missing_detector_raises(self, two_flavor_params, xsec_factory):
        with pytest.raises(ValueError, match="D2"):
            make_corr(two_flavor_params, xsec_factory)

    def test_hist_names(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        assert [h.name for h in corr.hists] == [
            "corr_nue_muon_NoXSec_D1_D2",
            "corr_numu_muon_NoXSec_D1_D2",
        ]
        assert [n.name for n in corr.norms] == [
            "corr_nue_muon_NoXSec_D1_D2_norm",
            "corr_numu_muon_NoXSec_D1_D2_norm",
        ]
        assert corr.offset == 2


class TestNormalization:
    """Row-wise division by the normalization histogram"""

    def test_joint_divided_by_norm(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[0].set_bin_content(1, 1, 10.0)
        corr.norms[0].set_bin_content(1, 5.0)
        corr.normalize()
        assert corr.hists[0].get_bin_content(1, 1) == pytest.approx(2.0)

    def test_zero_norm_zeroes_row(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[1].set_bin_content(1, 1, 10.0)
        corr.normalize()
        assert corr.hists[1].get_bin_content(1, 1) == 0.0

    def test_normalize_is_memoized(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[0].set_bin_content(1, 1, 10.0)
        corr.norms[0].set_bin_content(1, 5.0)
        corr.normalize()
        corr.normalize()
        assert corr.is_normalized
        assert corr.hists[0].get_bin_content(1, 1) == pytest.approx(2.0)

    def test_get_hist_triggers_normalization(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[0].set_bin_content(1, 1, 4.0)
        corr.norms[0].set_bin_content(1, 2.0)
        assert corr.get_hist(0).get_bin_content(1, 1) == pytest.approx(2.0)


class TestFillAndCombine:
    """Fill over ray pairs and combined histograms"""

    def test_fill_pairs_rays(self, corr_params, xsec_factory):
        """One ray at each detector fills the joint bin and the norm once each"""
        corr = make_corr(corr_params, xsec_factory, bins=(0.0, 2.0, 4.0))
        event = FluxEvent(ntype=12, ptype=13, nurays=[NuRay(1.0, 1.0), NuRay(3.0, 1.0)])
        corr.fill(event, {"D1": 0, "D2": 1, "znull": 2})
        assert corr.hists[0].get_bin_content(1, 2) == 1.0
        assert corr.norms[0].get_bin_content(1) == 1.0
        assert corr.hists[1].integral(flow=True) == 0.0

    def test_combine_all_appends_sums(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[0].set_bin_content(1, 1, 3.0)
        corr.hists[1].set_bin_content(1, 1, 5.0)
        corr.norms[0].set_bin_content(1, 1.0)
        corr.norms[1].set_bin_content(1, 1.0)
        corr.combine_all()
        corr.combine_all()
        names = [h.name for h in corr.hists]
        assert names[2:] == [
            "corr_allnu_muon_NoXSec_D1_D2",
            "corr_nue_allpar_NoXSec_D1_D2",
            "corr_numu_allpar_NoXSec_D1_D2",
            "corr_allnu_allpar_NoXSec_D1_D2",
        ]
        assert len(corr.norms) == len(corr.hists)
        assert corr.hists[2].get_bin_content(1, 1) == 8.0
        assert corr.hists[5].get_bin_content(1, 1) == 8.0
        assert corr.norms[5].get_bin_content(1) == 2.0

    def test_write_hists_is_flat_and_normalized(self, corr_params, xsec_factory):
        corr = make_corr(corr_params, xsec_factory)
        corr.hists[0].set_bin_content(1, 1, 6.0)
        corr.norms[0].set_bin_content(1, 3.0)
        out = HistogramDirectory("corr")
        corr.write_hists(out)
        assert out.subdirectories() == []
        assert len(out.histograms()) == 6
        np.testing.assert_allclose(out["corr_nue_muon_NoXSec_D1_D2"].get_bin_content(1, 1), 2.0)
