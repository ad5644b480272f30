"""
Tests for the command-line runner and plotting.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from flux_reader.core.histogram import Histogram
from flux_reader.core.io_utils import read_root_file, write_root_file
from flux_reader.core.output import HistogramDirectory
from flux_reader.core.spectra import Spectra1D
from flux_reader.core.variables import ENERGY
from flux_reader.plotting import plot_directory, plot_spectrum_1d, plot_spectrum_2d
from flux_reader.runner import build_parameters, main


class TestBuildParameters:
    """Parameter sets built from command-line options"""

    def test_presets_and_xsecs(self):
        params = build_parameters(["NOvA-ND", "MINOS-ND"], xsecs=["NoXSec", "tot_nc"], uses=3)
        assert [d.name for d in params.detectors] == ["NOvA-ND", "MINOS-ND"]
        assert all(d.uses == 3 for d in params.detectors)
        assert params.xsecs == ["NoXSec", "tot_nc"]

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            build_parameters(["Nowhere"])

    def test_ancestor_mode(self):
        assert not build_parameters(["MINOS-ND"], ancestor_tgt=True).ancestor_par


class TestCombineCommand:
    """flux-reader combine"""

    def test_combine_updates_file(self, tmp_path, two_flavor_params, xsec_factory):
        spectra = Spectra1D(two_flavor_params, "enu", "E", [0.0, 1.0], ENERGY, xsec_factory=xsec_factory)
        spectra.hists[0].set_bin_content(1, 1.0)
        spectra.hists[1].set_bin_content(1, 2.0)
        root = HistogramDirectory()
        spectra.write_hists(root.mkdir("enu"))
        path = tmp_path / "spectra.root"
        write_root_file(root, path)

        out = tmp_path / "combined.root"
        main(["combine", str(path), "--flavors", "-o", str(out)])

        combined = read_root_file(out)
        assert combined["enu/D1/enu_allnu_muon_NoXSec_D1"].get_bin_content(1) == pytest.approx(3.0)
        assert "enu/D1/enu_nue_allpar_NoXSec_D1" not in combined
        assert "enu/D1/enu_allnu_muon_NoXSec_D1" not in read_root_file(path)


class TestPlotting:
    """Figures saved to disk"""

    def test_plot_1d(self, tmp_path):
        hist = Histogram("h", [[0.0, 1.0, 2.0]], axis_labels=["E"])
        hist.fill(0.5, weight=2.0)
        plot_spectrum_1d(hist, save_path=tmp_path / "h.png", log_y=True)
        assert (tmp_path / "h.png").exists()

    def test_dimension_checked(self):
        with pytest.raises(ValueError):
            plot_spectrum_2d(Histogram("h", [[0.0, 1.0]]))

    def test_plot_directory(self, tmp_path):
        root = HistogramDirectory()
        root.mkdir("a").write(Histogram("one", [[0.0, 1.0]]))
        root.write(Histogram("two", [[0.0, 1.0], [0.0, 1.0]]))
        root.write(Histogram("three", [[0.0, 1.0]] * 3))
        assert plot_directory(root, tmp_path) == 2
        assert (tmp_path / "a" / "one.png").exists()
        assert (tmp_path / "two.png").exists()
