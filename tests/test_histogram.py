"""
Unit tests for histograms and the output directory tree.
"""

import numpy as np
import pytest

from flux_reader.core.histogram import Histogram
from flux_reader.core.output import HistogramDirectory


class TestHistogram:
    """Binning, filling and arithmetic"""

    def test_flow_bins(self):
        """Values below the first edge go to slot 0, at or above the last to n+1"""
        hist = Histogram("h", [[0.0, 1.0, 2.0]])
        hist.fill(-0.5)
        hist.fill(0.5, weight=2.0)
        hist.fill(1.0)
        hist.fill(2.0, weight=3.0)
        np.testing.assert_array_equal(hist.values, [1.0, 2.0, 1.0, 3.0])
        np.testing.assert_array_equal(hist.sumw2, [1.0, 4.0, 1.0, 9.0])
        assert hist.entries == 4
        assert hist.integral() == 3.0
        assert hist.integral(flow=True) == 7.0

    def test_2d_fill(self):
        hist = Histogram("h2", [[0, 1, 2], [0, 10]])
        hist.fill(1.5, 5.0, weight=0.5)
        assert hist.values.shape == (4, 3)
        assert hist.get_bin_content(2, 1) == 0.5

    def test_invalid_edges(self):
        with pytest.raises(ValueError):
            Histogram("bad", [[0.0, 0.0, 1.0]])
        with pytest.raises(ValueError):
            Histogram("bad", [[0.0]])
        with pytest.raises(ValueError):
            Histogram("bad", [[0, 1]] * 4)

    def test_add_and_clone(self):
        a = Histogram("a", [[0, 1, 2]])
        b = Histogram("b", [[0, 1, 2]])
        a.fill(0.5)
        b.fill(0.5, weight=2.0)
        b.fill(1.5)
        total = a.clone("total").add(b)
        np.testing.assert_array_equal(total.values, [0.0, 3.0, 1.0, 0.0])
        assert total.name == "total"
        np.testing.assert_array_equal(a.values, [0.0, 1.0, 0.0, 0.0])

    def test_add_rejects_other_binning(self):
        with pytest.raises(ValueError):
            Histogram("a", [[0, 1, 2]]).add(Histogram("b", [[0, 1, 3]]))

    def test_lookup(self):
        hist = Histogram("w", [[0, 1], [0, 1, 2]])
        hist.set_bin_content(1, 2, 0.25)
        assert hist.lookup(0.5, 1.5) == 0.25
        assert hist.lookup(0.5, 2.5) is None

    def test_from_numpy_without_flow(self):
        hist = Histogram.from_numpy("n", np.array([1.0, 2.0]), [[0, 1, 2]])
        np.testing.assert_array_equal(hist.values, [0.0, 1.0, 2.0, 0.0])
        values, edges = hist.to_numpy()
        np.testing.assert_array_equal(values, [1.0, 2.0])
        np.testing.assert_array_equal(edges, [0, 1, 2])

    def test_scale(self):
        hist = Histogram("s", [[0, 1]])
        hist.fill(0.5, weight=2.0)
        hist.scale(0.5)
        assert hist.get_bin_content(1) == 1.0
        assert hist.get_bin_error(1) == pytest.approx(1.0)


class TestHistogramDirectory:
    """Nested directory access"""

    def test_mkdir_and_nested_get(self):
        root = HistogramDirectory()
        hist = Histogram("h", [[0, 1]])
        root.mkdir("enu").mkdir("D1").write(hist)
        assert root.get("enu/D1/h") is hist
        assert "enu/D1/h" in root
        assert "enu/D2" not in root
        assert root.mkdir("enu") is root["enu"]

    def test_mkdir_over_histogram_fails(self):
        root = HistogramDirectory()
        root.write(Histogram("h", [[0, 1]]))
        with pytest.raises(ValueError):
            root.mkdir("h")

    def test_walk_and_strings(self):
        root = HistogramDirectory()
        root.write(Histogram("TotalPOT", [[0, 1]]))
        root.mkdir("a").write(Histogram("x", [[0, 1]]))
        root.write_string("note", "hello")
        paths = [path for path, _ in root.walk()]
        assert paths == ["TotalPOT", "a/x", "note"]
        assert root.strings() == {"note": "hello"}
        assert root.histogram_names() == ["TotalPOT"]
