"""
Detector-correlated spectra.

For a pair of detectors (X, Y) the same variable is histogrammed at both
locations: each flux entry fills a joint histogram at (value at X, value at Y)
with the weight at Y, and a normalization histogram at the value at X with the
weight at X. After all entries are read, the joint histogram is divided row
by row by the normalization, giving the distribution at Y conditional on the
value at X.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import ALL_NU, ALL_PAR, NAME_SEP
from .cross_section import XSecFactory
from .data_classes import FluxEvent
from .histogram import Histogram
from .output import HistogramDirectory
from .parameters import Parameters
from .spectra import Spectra
from .variables import DEFAULT_WEIGHT, Var, Weight

CombinedHists = Tuple[List[Histogram], List[Histogram]]


class SpectraCorrDet(Spectra):
    """Joint distribution of ``var_x`` at two detectors.

    One joint 2D histogram and one 1D normalization histogram exist per
    (flavor, parent, cross section). Combined flavor/parent histograms are
    appended after the originals the first time the spectrum is normalized.

    Raises
    ------
    ValueError
        If ``det_x`` or ``det_y`` is not a detector of ``params``.
    """

    kind = "SpectraCorrDet"

    def __init__(
        self,
        params: Parameters,
        title: str,
        det_x: str,
        det_y: str,
        label_x: str,
        bins_x: Sequence[float],
        var_x: Var,
        weight: Weight = DEFAULT_WEIGHT,
        ext_weights: Any = None,
        xsec_factory: Optional[XSecFactory] = None,
    ):
        super().__init__(params, title, var_x, weight, ext_weights, xsec_factory)

        self.det_x = det_x
        self.det_y = det_y
        self.i_det_x = self.params.find_detector(det_x)
        self.i_det_y = self.params.find_detector(det_y)
        missing = [name for name, i in ((det_x, self.i_det_x), (det_y, self.i_det_y)) if i == -1]
        if missing:
            raise ValueError(
                f"Correlated spectrum '{title}' needs detectors {det_x} and {det_y}; "
                f"not found: {', '.join(missing)}"
            )

        self.norms: List[Histogram] = []
        self._is_combined = False
        self._is_normalized = False
        self._create_corr_hists(label_x, bins_x)

    @property
    def offset(self) -> int:
        """Master index of the first combination at detector Y."""
        return self.params.max_master(self.i_det_y - 1)

    def corr_name(self, flav: str, parent: str, xsec: str) -> str:
        return NAME_SEP.join((self.title, flav, parent, xsec, self.det_x, self.det_y))

    def _create_corr_hists(self, label_x: str, bins_x: Sequence[float]):
        labels = (f"{self.det_x} {label_x}", f"{self.det_y} {label_x}")
        for master in range(self.offset, self.params.max_master(self.i_det_y)):
            indices = self.params.decompose(master)
            name = self.corr_name(
                self.params.nu_flavs[indices.i_flav].name,
                self.params.parents[indices.i_par].name,
                self.params.xsecs[indices.i_xsec],
            )
            self.hists.append(Histogram(name, [bins_x, bins_x], title=self.title, axis_labels=labels))
            self.norms.append(Histogram(f"{name}_norm", [bins_x], title=self.title, axis_labels=labels[:1]))

    def coordinates(self, event: FluxEvent, i_ray: int) -> Tuple[float, ...]:
        return (self.var_x(event, i_ray),)

    def fill(self, event: FluxEvent, nuray_indices: Mapping[str, int]):
        located = self.locate(event)
        if located is None:
            return
        i_flav, i_par = located

        rays_x = self.ray_range(self.params.detectors[self.i_det_x], nuray_indices)
        rays_y = self.ray_range(self.params.detectors[self.i_det_y], nuray_indices)

        cursor = self.params.new_indices()
        cursor.i_flav = i_flav
        cursor.i_par = i_par
        cursor.i_det = self.i_det_y
        for i_xsec in range(self.params.n_xsec):
            cursor.i_xsec = i_xsec
            i_hist = cursor.master - self.offset
            hist = self.hists[i_hist]
            norm = self.norms[i_hist]
            curve = self.xsec_curve(i_flav, i_xsec, self.i_det_y)

            for i_ray_x in rays_x:
                w_x = self.standard_weight(event, i_ray_x, curve)
                value_x = self.var_x(event, i_ray_x)
                for i_ray_y in rays_y:
                    w_y = self.standard_weight(event, i_ray_y, curve)
                    hist.fill(value_x, self.var_x(event, i_ray_y),
                              weight=self.weight(w_y, event, i_ray_y, self.ext_weights))
                    norm.fill(value_x, weight=self.weight(w_x, event, i_ray_x, self.ext_weights))

    # ------------------------------------------------------------------
    # Combination and normalization
    # ------------------------------------------------------------------

    def _sum(self, positions: Sequence[int], hists: Sequence[Histogram],
             norms: Sequence[Histogram], name: str) -> Tuple[Histogram, Histogram]:
        hist = hists[positions[0]].clone(name)
        norm = norms[positions[0]].clone(f"{name}_norm")
        for i in positions[1:]:
            hist.add(hists[i])
            norm.add(norms[i])
        return hist, norm

    def combine_nu_flavs(self) -> CombinedHists:
        """Sum over flavors, one pair per (cross section, parent)."""
        p = self.params
        new_hists, new_norms = [], []
        for i_xsec in range(p.n_xsec):
            for i_par in range(p.n_par):
                first = p.n_flav * p.n_par * i_xsec + p.n_flav * i_par
                name = self.corr_name(ALL_NU, p.parents[i_par].name, p.xsecs[i_xsec])
                hist, norm = self._sum(range(first, first + p.n_flav), self.hists, self.norms, name)
                new_hists.append(hist)
                new_norms.append(norm)
        return new_hists, new_norms

    def combine_parents(self) -> CombinedHists:
        """Sum over parents, one pair per (cross section, flavor)."""
        p = self.params
        new_hists, new_norms = [], []
        for i_xsec in range(p.n_xsec):
            for i_flav in range(p.n_flav):
                first = p.n_flav * p.n_par * i_xsec + i_flav
                positions = range(first, first + p.n_flav * p.n_par, p.n_flav)
                name = self.corr_name(p.nu_flavs[i_flav].name, ALL_PAR, p.xsecs[i_xsec])
                hist, norm = self._sum(positions, self.hists, self.norms, name)
                new_hists.append(hist)
                new_norms.append(norm)
        return new_hists, new_norms

    def combine_all(self):
        """Append flavor-combined, parent-combined and fully combined histograms.

        Runs once; later calls do nothing.
        """
        if self._is_combined:
            return
        p = self.params
        nu_hists, nu_norms = self.combine_nu_flavs()
        par_hists, par_norms = self.combine_parents()

        all_hists, all_norms = [], []
        for i_xsec in range(p.n_xsec):
            first = i_xsec * p.n_flav
            name = self.corr_name(ALL_NU, ALL_PAR, p.xsecs[i_xsec])
            hist, norm = self._sum(range(first, first + p.n_flav), par_hists, par_norms, name)
            all_hists.append(hist)
            all_norms.append(norm)

        self.hists.extend(nu_hists + par_hists + all_hists)
        self.norms.extend(nu_norms + par_norms + all_norms)
        self._is_combined = True

    def normalize(self):
        """Divide each joint histogram row by the matching normalization bin.

        Rows whose normalization is not positive are set to zero. Flow bins
        are included.
        """
        if self._is_normalized:
            return
        self.combine_all()

        for hist, norm in zip(self.hists, self.norms):
            norm_values = norm.values
            positive = norm_values > 0
            divisor = np.where(positive, norm_values, 1.0)[:, np.newaxis]
            hist.values = np.where(positive[:, np.newaxis], hist.values / divisor, 0.0)
            hist.sumw2 = np.where(positive[:, np.newaxis], hist.sumw2 / (divisor * divisor), 0.0)

        self._is_normalized = True

    @property
    def is_normalized(self) -> bool:
        return self._is_normalized

    def get_hist(self, i_hist: int) -> Histogram:
        self.normalize()
        return super().get_hist(i_hist)

    def write_hists(self, out: HistogramDirectory):
        """Write the joint histograms directly into ``out``."""
        self.normalize()
        for hist in self.hists:
            out.write(hist)

    def manifest_entry(self):
        entry = super().manifest_entry()
        entry["det_x"] = self.det_x
        entry["det_y"] = self.det_y
        return entry
