"""
Unit tests for the flux reader event loop.
"""

import json

import pytest

from flux_reader import config
from flux_reader.core.constants import DEFAULT_WEIGHT_CORRECTION
from flux_reader.core.data_classes import Detector
from flux_reader.core.flux_reader import FluxReader
from flux_reader.core.variables import ENERGY


@pytest.fixture
def flux_files(tmp_path):
    for name in ("c.root", "a.root", "b.root"):
        (tmp_path / name).write_bytes(b"")
    return tmp_path


class StubSource:
    """In-memory event source recording what it was asked for."""

    def __init__(self, events):
        self.events = events
        self.requests = []

    def __call__(self, files, tree_name, branches, overrides):
        self.requests.append((list(files), tree_name, set(branches), dict(overrides)))
        return iter(self.events)


def make_reader(pattern, events=(), **kwargs):
    kwargs.setdefault("show_progress", False)
    kwargs.setdefault("reweight_nurays", False)
    return FluxReader(
        str(pattern),
        event_source=StubSource(list(events)),
        pot_source=lambda files, meta, pot: 2.5e20,
        **kwargs,
    )


class TestFileSelection:
    """Wildcard expansion, skipping and truncation"""

    def test_files_sorted(self, flux_files):
        reader = make_reader(flux_files / "*.root")
        assert [p.rsplit("/", 1)[-1] for p in reader.input_files] == ["a.root", "b.root", "c.root"]

    def test_skip_then_truncate(self, flux_files):
        reader = make_reader(flux_files / "*.root", num_files=1, skip_files=1)
        assert [p.rsplit("/", 1)[-1] for p in reader.input_files] == ["b.root"]

    def test_num_files_larger_than_found(self, flux_files):
        reader = make_reader(flux_files / "*.root", num_files=10)
        assert len(reader.input_files) == 3

    def test_no_files(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            make_reader(tmp_path / "*.root")

    def test_skip_everything(self, flux_files):
        with pytest.raises(FileNotFoundError):
            make_reader(flux_files / "*.root", skip_files=5)

    def test_environment_variables_expanded(self, flux_files, monkeypatch):
        monkeypatch.setenv("FLUX_TEST_DIR", str(flux_files))
        reader = make_reader("$FLUX_TEST_DIR/a.root")
        assert len(reader.input_files) == 1


class TestRayIndices:
    """Per-detector offsets into the ray list"""

    def test_sorted_first_registration_wins(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", xsec_factory=xsec_factory)
        two_flavor_params.set_det_uses("D1", 2)
        reader.add_spectra_1d(two_flavor_params, "first", "E", [0, 1], ENERGY)

        two_flavor_params.set_det_uses("D1", 5)
        two_flavor_params.add_detector(Detector("C0", "CH2", uses=3))
        reader.add_spectra_1d(two_flavor_params, "second", "E", [0, 1], ENERGY)

        indices = reader.set_nuray_indices()
        assert indices == {"C0": 0, "D1": 3, "znull": 5}
        assert [d.name for d in reader.detectors] == ["C0", "D1"]

    def test_zero_uses_takes_one_slot(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", xsec_factory=xsec_factory)
        two_flavor_params.set_det_uses("D1", 0)
        reader.add_spectra_1d(two_flavor_params, "e", "E", [0, 1], ENERGY)
        assert reader.set_nuray_indices() == {"D1": 0, "znull": 1}


class TestBranches:
    """Branch planning and name overrides"""

    def test_reweight_branches_added_automatically(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", reweight_nurays=None, xsec_factory=xsec_factory)
        reader.add_spectra_1d(two_flavor_params, "e", "E", [0, 1], ENERGY)
        assert reader.needs_reweight()
        assert config.REWEIGHT_BRANCHES <= reader.branches()

    def test_reweight_disabled(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", xsec_factory=xsec_factory)
        reader.add_spectra_1d(two_flavor_params, "e", "E", [0, 1], ENERGY)
        assert not reader.needs_reweight()
        assert "necm" not in reader.branches()

    def test_override_unknown_branch_warns(self, flux_files, capsys):
        reader = make_reader(flux_files / "*.root")
        reader.override_default_var_name("not_a_branch", "x")
        assert reader.branch_overrides == {}
        assert "[warning]" in capsys.readouterr().out

    def test_overrides_passed_to_source(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", xsec_factory=xsec_factory)
        reader.add_spectra_1d(two_flavor_params, "e", "E", [0, 1], ENERGY)
        reader.override_tree_name("flux")
        reader.override_default_var_name("ntype", "Ntype")
        assert not reader.is_standard_dk2nu()
        reader.read_flux()
        files, tree, branches, overrides = reader.event_source.requests[0]
        assert tree == "flux"
        assert overrides == {"ntype": "Ntype"}
        assert "ntype" in branches


class TestReadFlux:
    """Full loop over an in-memory event source"""

    def test_fill_and_output(self, flux_files, two_flavor_params, xsec_factory, make_event):
        events = [
            make_event(ntype=12, energy=2.0),
            make_event(ntype=14, energy=0.5),
            make_event(ntype=16, energy=0.5),
        ]
        reader = make_reader(flux_files / "*.root", events, xsec_factory=xsec_factory)
        reader.add_spectra_1d(two_flavor_params, "enu", "E", [0.0, 1.0, 3.0], ENERGY)

        root = reader.read_flux()

        nue = root["enu/D1/enu_nue_muon_NoXSec_D1"]
        numu = root["enu/D1/enu_numu_muon_NoXSec_D1"]
        assert nue.get_bin_content(2) == pytest.approx(DEFAULT_WEIGHT_CORRECTION)
        assert numu.get_bin_content(1) == pytest.approx(DEFAULT_WEIGHT_CORRECTION)
        assert nue.integral(flow=True) + numu.integral(flow=True) == pytest.approx(
            2 * DEFAULT_WEIGHT_CORRECTION)

        assert root[config.TOTAL_POT_NAME].get_bin_content(1) == 2.5e20

        manifest = json.loads(root.strings()[config.MANIFEST_KEY])
        assert manifest["entries"] == 3
        assert manifest["total_pot"] == 2.5e20
        assert manifest["spectra"][0]["title"] == "enu"
        assert manifest["nuray_indices"] == {"D1": 0, "znull": 1}

    def test_missing_rays_padded(self, flux_files, two_flavor_params, xsec_factory, make_event):
        """Entries with fewer rays than slots read empty rays"""
        two_flavor_params.set_det_uses("D1", 2)
        reader = make_reader(flux_files / "*.root", [make_event(n_rays=1)], xsec_factory=xsec_factory)
        spectra = reader.add_spectra_1d(two_flavor_params, "enu", "E", [0.0, 1.0, 3.0], ENERGY)
        reader.read_flux()
        assert spectra.get_hist(0).entries == 2
        assert spectra.get_hist(0).get_bin_content(1) == 0.0

    def test_reweighting_in_loop(self, flux_files, two_flavor_params, xsec_factory):
        from flux_reader.core.data_classes import FluxEvent

        event = FluxEvent(ntype=12, ptype=13, pdpz=5.0, necm=0.05)
        reader = make_reader(flux_files / "*.root", [event], reweight_nurays=True,
                             xsec_factory=xsec_factory, seed=1)
        two_flavor_params.detectors[0].position = (0.0, 0.0, 1.0e4)
        spectra = reader.add_spectra_1d(two_flavor_params, "enu", "E", [0.0, 100.0], ENERGY)
        reader.read_flux()
        assert event.nurays[0].energy > 0.05
        assert spectra.get_hist(0).integral() > 0.0

    def test_spectra_written_in_registration_order(self, flux_files, two_flavor_params, xsec_factory):
        reader = make_reader(flux_files / "*.root", xsec_factory=xsec_factory)
        reader.add_spectra_1d(two_flavor_params, "zeta", "E", [0, 1], ENERGY)
        reader.add_spectra_1d(two_flavor_params, "alpha", "E", [0, 1], ENERGY)
        root = reader.read_flux()
        assert root.keys() == [config.TOTAL_POT_NAME, "zeta", "alpha", config.MANIFEST_KEY]

    def test_pot_path_override(self, flux_files, two_flavor_params, xsec_factory):
        calls = []
        reader = FluxReader(
            str(flux_files / "*.root"),
            event_source=StubSource([]),
            pot_source=lambda files, meta, pot: calls.append((meta, pot)) or 1.0,
            xsec_factory=xsec_factory,
            reweight_nurays=False,
            show_progress=False,
        )
        reader.add_spectra_1d(two_flavor_params, "e", "E", [0, 1], ENERGY)
        reader.override_pot_path("Meta", "totpot")
        reader.read_flux()
        assert calls == [("Meta", "totpot")]
