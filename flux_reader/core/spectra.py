"""
Spectra: per-entry histogram dispatch over a parameter set.

A spectrum owns one histogram per combination of (flavor, parent, cross
section, detector), stored at the position given by the master index. Each
flux entry is routed to the histograms of its flavor and parent, for every
detector and cross section, once per ray aimed at the detector.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .. import config
from .constants import DEFAULT_WEIGHT_CORRECTION, NAME_SEP, NO_XSEC
from .cross_section import CrossSectionLibrary, XSecFactory, constant_curve
from .data_classes import Detector, FluxEvent
from .histogram import Histogram
from .output import HistogramDirectory
from .parameters import Parameters
from .variables import DEFAULT_WEIGHT, Var, Weight

Curve = Callable[[float], float]


class Spectra:
    """Base class for spectra; subclasses create the histograms and coordinates.

    Parameters
    ----------
    params : Parameters
        Slicing of the flux. A snapshot is taken, so later changes to
        ``params`` do not affect this spectrum.
    title : str
        Prefix of every histogram name and name of the output directory.
    var_x : Var
        Quantity on the x axis.
    weight : Weight
        Turns the standard weight into the fill weight.
    ext_weights : object, optional
        Passed unchanged to ``weight``.
    xsec_factory : callable, optional
        ``(pdg, target, label) -> curve``. Defaults to a
        ``CrossSectionLibrary`` reading the GENIE file in ``$GENIEXSECPATH``.
    """

    kind = "Spectra"

    def __init__(
        self,
        params: Parameters,
        title: str,
        var_x: Var,
        weight: Weight = DEFAULT_WEIGHT,
        ext_weights: Any = None,
        xsec_factory: Optional[XSecFactory] = None,
    ):
        self.params = params.snapshot()
        self.title = title
        self.var_x = var_x
        self.weight = weight
        self.ext_weights = ext_weights
        self.xsec_factory = xsec_factory if xsec_factory is not None else CrossSectionLibrary()

        self.branches: Set[str] = set(config.DEFAULT_BRANCHES)
        self.branches |= var_x.branches
        self.branches |= weight.branches

        self.hists: List[Histogram] = []
        self._xsec_curves: Dict[Tuple[int, int, int], Curve] = {}
        self._setup_xsec()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _setup_xsec(self):
        """Build one curve per distinct (flavor PDG, target, label), cached by position."""
        curves: Dict[Tuple[int, str, str], Curve] = {}
        for indices in self.params:
            key = (indices.i_flav, indices.i_xsec, indices.i_det)
            if key in self._xsec_curves:
                continue
            pdg = self.params.nu_flavs[indices.i_flav].pdg
            target = self.params.detectors[indices.i_det].target
            label = self.params.xsecs[indices.i_xsec]
            curve_key = (pdg, target, label)
            if curve_key not in curves:
                if label == NO_XSEC:
                    curves[curve_key] = constant_curve()
                else:
                    curves[curve_key] = self.xsec_factory(pdg, target, label)
            self._xsec_curves[key] = curves[curve_key]

    def hist_name(self, master: int) -> str:
        return self.title + NAME_SEP + self.params.name_tag(master)

    def _create_hists(self, edges: Sequence[Sequence[float]], labels: Sequence[str]):
        self.hists = [
            Histogram(self.hist_name(master), edges, title=self.title, axis_labels=labels)
            for master in range(self.params.max_master())
        ]

    # ------------------------------------------------------------------
    # Filling
    # ------------------------------------------------------------------

    def detectors(self) -> List[Detector]:
        """Detectors of this spectrum, sorted by name."""
        return sorted(self.params.detectors)

    def xsec_curve(self, i_flav: int, i_xsec: int, i_det: int) -> Curve:
        return self._xsec_curves[(i_flav, i_xsec, i_det)]

    def ancestor_pdg(self, event: FluxEvent) -> int:
        pdg = event.ancestor_pdg(self.params.ancestor_par)
        return pdg if self.params.sign_sensitive else abs(pdg)

    def locate(self, event: FluxEvent) -> Optional[Tuple[int, int]]:
        """(flavor, parent) positions of ``event``; None when either is not tracked."""
        i_flav = self.params.find_nu_flav(event.ntype)
        if i_flav == -1:
            return None
        i_par = self.params.find_parent(self.ancestor_pdg(event))
        if i_par == -1:
            return None
        return i_flav, i_par

    @staticmethod
    def ray_range(det: Detector, nuray_indices: Mapping[str, int]) -> range:
        first = nuray_indices[det.name]
        return range(first, first + det.n_rays)

    @staticmethod
    def standard_weight(event: FluxEvent, i_ray: int, curve: Curve) -> float:
        ray = event.nurays[i_ray]
        return event.nimpwt * ray.weight * curve(ray.energy) * DEFAULT_WEIGHT_CORRECTION

    def coordinates(self, event: FluxEvent, i_ray: int) -> Tuple[float, ...]:
        raise NotImplementedError

    def fill(self, event: FluxEvent, nuray_indices: Mapping[str, int]):
        """Add one flux entry to the histograms of its flavor and parent."""
        located = self.locate(event)
        if located is None:
            return
        i_flav, i_par = located

        cursor = self.params.new_indices()
        cursor.i_flav = i_flav
        cursor.i_par = i_par
        for i_det, det in enumerate(self.params.detectors):
            cursor.i_det = i_det
            rays = self.ray_range(det, nuray_indices)
            for i_xsec in range(self.params.n_xsec):
                cursor.i_xsec = i_xsec
                hist = self.hists[cursor.master]
                curve = self.xsec_curve(i_flav, i_xsec, i_det)
                for i_ray in rays:
                    w = self.standard_weight(event, i_ray, curve)
                    hist.fill(*self.coordinates(event, i_ray),
                              weight=self.weight(w, event, i_ray, self.ext_weights))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def n_hists(self) -> int:
        return len(self.hists)

    def get_hist(self, i_hist: int) -> Histogram:
        if i_hist < 0 or i_hist >= len(self.hists):
            raise IndexError(
                f"Histogram index {i_hist} is out of range for '{self.title}' "
                f"({len(self.hists)} histograms)."
            )
        return self.hists[i_hist]

    def write_hists(self, out: HistogramDirectory):
        """Write every histogram into a subdirectory named after its detector."""
        det_name = None
        target = out
        for indices in self.params:
            name = self.params.detectors[indices.i_det].name
            if name != det_name:
                det_name = name
                target = out.mkdir(name)
            target.write(self.hists[indices.master])

    def manifest_entry(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "nu_flavs": [[f.name, f.pdg] for f in self.params.nu_flavs],
            "parents": [[p.name, p.pdg] for p in self.params.parents],
            "xsecs": list(self.params.xsecs),
            "detectors": [d.name for d in self.params.detectors],
            "sign_sensitive": self.params.sign_sensitive,
            "ancestor_par": self.params.ancestor_par,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(title={self.title!r}, n_hists={self.n_hists})"


class Spectra1D(Spectra):
    """One histogram axis."""

    kind = "Spectra1D"

    def __init__(
        self,
        params: Parameters,
        title: str,
        label_x: str,
        bins_x: Sequence[float],
        var_x: Var,
        weight: Weight = DEFAULT_WEIGHT,
        ext_weights: Any = None,
        xsec_factory: Optional[XSecFactory] = None,
    ):
        super().__init__(params, title, var_x, weight, ext_weights, xsec_factory)
        self._create_hists([bins_x], [label_x])

    def coordinates(self, event: FluxEvent, i_ray: int) -> Tuple[float, ...]:
        return (self.var_x(event, i_ray),)


class Spectra2D(Spectra):
    """Two histogram axes."""

    kind = "Spectra2D"

    def __init__(
        self,
        params: Parameters,
        title: str,
        label_x: str,
        bins_x: Sequence[float],
        var_x: Var,
        label_y: str,
        bins_y: Sequence[float],
        var_y: Var,
        weight: Weight = DEFAULT_WEIGHT,
        ext_weights: Any = None,
        xsec_factory: Optional[XSecFactory] = None,
    ):
        super().__init__(params, title, var_x, weight, ext_weights, xsec_factory)
        self.var_y = var_y
        self.branches |= var_y.branches
        self._create_hists([bins_x, bins_y], [label_x, label_y])

    def coordinates(self, event: FluxEvent, i_ray: int) -> Tuple[float, ...]:
        return self.var_x(event, i_ray), self.var_y(event, i_ray)


class Spectra3D(Spectra):
    """Three histogram axes."""

    kind = "Spectra3D"

    def __init__(
        self,
        params: Parameters,
        title: str,
        label_x: str,
        bins_x: Sequence[float],
        var_x: Var,
        label_y: str,
        bins_y: Sequence[float],
        var_y: Var,
        label_z: str,
        bins_z: Sequence[float],
        var_z: Var,
        weight: Weight = DEFAULT_WEIGHT,
        ext_weights: Any = None,
        xsec_factory: Optional[XSecFactory] = None,
    ):
        super().__init__(params, title, var_x, weight, ext_weights, xsec_factory)
        self.var_y = var_y
        self.var_z = var_z
        self.branches |= var_y.branches
        self.branches |= var_z.branches
        self._create_hists([bins_x, bins_y, bins_z], [label_x, label_y, label_z])

    def coordinates(self, event: FluxEvent, i_ray: int) -> Tuple[float, ...]:
        return self.var_x(event, i_ray), self.var_y(event, i_ray), self.var_z(event, i_ray)
