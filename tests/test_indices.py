"""
Unit tests for the mixed-radix index.
"""

import pytest

from flux_reader.core.indices import Indices


BASES = [(1, 1, 1, 1), (2, 1, 1, 1), (2, 3, 2, 2), (4, 7, 3, 2), (6, 7, 3, 5)]


class TestIndices:
    """Master index arithmetic"""

    def test_master_formula(self):
        """Flavor is the units digit, detector the slowest"""
        idx = Indices(n_flav=2, n_par=3, n_xsec=4, n_det=5, i_flav=1, i_par=2, i_xsec=3, i_det=4)
        assert idx.master == 1 + 2 * 2 + 3 * 2 * 3 + 4 * 2 * 3 * 4

    @pytest.mark.parametrize("bases", BASES)
    def test_increment_visits_every_master_once(self, bases):
        """Incrementing from zero visits 0..size-1 in order, then saturates"""
        idx = Indices(*bases)
        seen = []
        while not idx.exhausted:
            seen.append(idx.master)
            idx.increment()
        assert seen == list(range(idx.size))

        saturated = idx.master
        idx.increment()
        idx.increment()
        assert idx.master == saturated
        assert idx.exhausted

    @pytest.mark.parametrize("bases", BASES)
    def test_set_master_matches_increment(self, bases):
        """set_master gives the digits that incrementing reaches"""
        walker = Indices(*bases)
        for master in range(walker.size):
            jumped = walker.with_bases()
            assert jumped.set_master(master)
            assert (jumped.i_flav, jumped.i_par, jumped.i_xsec, jumped.i_det) == (
                walker.i_flav, walker.i_par, walker.i_xsec, walker.i_det
            )
            assert jumped.master == master
            walker.increment()

    @pytest.mark.parametrize("master", [-1, 12, 100])
    def test_set_master_out_of_range(self, master):
        """Out-of-range masters are rejected and leave the digits alone"""
        idx = Indices(2, 3, 2, 1, i_flav=1, i_par=1)
        assert not idx.set_master(master)
        assert (idx.i_flav, idx.i_par) == (1, 1)

    def test_reset(self):
        """reset returns to master 0"""
        idx = Indices(2, 2, 2, 2)
        idx.set_master(13)
        idx.reset()
        assert idx.master == 0

    def test_empty_bases_have_no_master(self):
        """A zero base gives no valid master"""
        idx = Indices(0, 3, 1, 1)
        assert idx.size == 0
        assert not idx.set_master(0)
