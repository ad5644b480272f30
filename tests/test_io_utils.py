"""
Unit tests for ROOT and CSV input/output.
"""

import csv
import json

import awkward as ak
import numpy as np
import pytest
import uproot

from flux_reader import config
from flux_reader.core.histogram import Histogram
from flux_reader.core.io_utils import (
    count_entries,
    export_directory_to_csv,
    iter_flux_events,
    read_manifest,
    read_root_file,
    resolve_branch_names,
    sum_pot,
    write_root_file,
)
from flux_reader.core.output import HistogramDirectory


PLAIN_NAMES = {
    "ntype": "ntype",
    "ptype": "ptype",
    "nimpwt": "nimpwt",
    "tptype": "tptype",
    "nuray.E": "E",
    "nuray.wgt": "wgt",
}


@pytest.fixture
def flux_file(tmp_path):
    path = tmp_path / "flux.root"
    with uproot.recreate(path) as f:
        f["flux"] = {
            "ntype": np.array([12, 14, -14], dtype=np.int32),
            "ptype": np.array([13, 211, -211], dtype=np.int32),
            "nimpwt": np.array([1.0, 2.0, 0.5]),
            "tptype": np.array([211, 211, -211], dtype=np.int32),
            "E": ak.Array([[1.0, 1.5], [2.0], []]),
            "wgt": ak.Array([[0.1, 0.2], [0.3], []]),
        }
        f["meta"] = {"pots": np.array([1.0e18, 2.0e18])}
    return path


class TestEventInput:
    """Streaming flux entries"""

    def test_default_names(self):
        names = resolve_branch_names({"ntype", "nuray.E"}, {"ntype": "nu_type"})
        assert names == {"ntype": "nu_type", "nuray.E": "nuray.E"}
        assert resolve_branch_names({"ptype"}) == {"ptype": "decay.ptype"}

    def test_iter_flux_events(self, flux_file):
        events = list(iter_flux_events([flux_file], "flux", config.DEFAULT_BRANCHES, PLAIN_NAMES))
        assert [e.ntype for e in events] == [12, 14, -14]
        assert [e.ptype for e in events] == [13, 211, -211]
        assert events[1].nimpwt == 2.0
        assert [(r.energy, r.weight) for r in events[0].nurays] == [(1.0, 0.1), (1.5, 0.2)]
        assert events[2].nurays == []
        assert events[2].tptype == -211

    def test_missing_branch(self, flux_file):
        with pytest.raises(KeyError, match="necm"):
            list(iter_flux_events([flux_file], "flux", {"ntype", "necm"}, PLAIN_NAMES))

    def test_pot_and_entries(self, flux_file):
        assert sum_pot([flux_file], "meta", "pots") == pytest.approx(3.0e18)
        assert sum_pot([]) == 0.0
        assert count_entries([flux_file, flux_file], "flux") == 6


class TestHistogramFiles:
    """Writing and reading histogram trees"""

    def test_round_trip(self, tmp_path):
        h1 = Histogram("h1", [[0.0, 1.0, 3.0]], title="energy", axis_labels=["E (GeV)"])
        h1.fill(-1.0, weight=2.0)
        h1.fill(2.0, weight=0.5)
        h1.fill(5.0)
        h2 = Histogram("h2", [[0.0, 1.0, 2.0], [0.0, 5.0, 10.0, 20.0]], axis_labels=["x", "y"])
        h2.fill(0.5, 7.0, weight=3.0)
        h2.fill(1.5, 25.0)

        root = HistogramDirectory()
        root.write(h1)
        root.mkdir("enu").mkdir("D1").write(h2)
        root.write_string(config.MANIFEST_KEY, json.dumps({"version": 1}))

        path = tmp_path / "out" / "spectra.root"
        write_root_file(root, path)
        loaded = read_root_file(path)

        r1 = loaded["h1"]
        np.testing.assert_allclose(r1.values, h1.values)
        np.testing.assert_allclose(r1.sumw2, h1.sumw2)
        np.testing.assert_allclose(r1.edges[0], h1.edges[0])
        assert r1.title == "energy"
        assert r1.axis_labels == ["E (GeV)"]
        assert r1.entries == 3

        r2 = loaded["enu/D1/h2"]
        np.testing.assert_allclose(r2.values, h2.values)
        np.testing.assert_allclose(r2.sumw2, h2.sumw2)
        assert r2.axis_labels == ["x", "y"]

        assert read_manifest(loaded) == {"version": 1}

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_root_file(tmp_path / "missing.root")

    def test_manifest_absent(self):
        assert read_manifest(HistogramDirectory()) is None


class TestCSVExport:
    """CSV export of every histogram"""

    def test_export_directory(self, tmp_path):
        hist = Histogram("h", [[0.0, 1.0, 2.0]])
        hist.fill(1.5, weight=4.0)
        root = HistogramDirectory()
        root.mkdir("enu").write(hist)
        root.write_string("note", "not a histogram")

        assert export_directory_to_csv(root, tmp_path) == 1
        with open(tmp_path / "enu" / "h.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["x_low", "x_high", "content", "error"]
        assert [float(v) for v in rows[2]] == [1.0, 2.0, 4.0, 4.0]
