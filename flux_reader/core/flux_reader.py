"""
The event loop: read flux files, fill every registered spectrum, write output.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

import numpy as np
from tqdm import tqdm

from .. import config
from .constants import NURAY_END_KEY
from .cross_section import CrossSectionLibrary, XSecFactory
from .data_classes import Detector, FluxEvent
from .histogram import Histogram
from .io_utils import count_entries, expand_wildcard, iter_flux_events, sum_pot
from .output import HistogramDirectory
from .parameters import Parameters
from .reweight import reweight_event
from .spectra import Spectra, Spectra1D, Spectra2D, Spectra3D
from .spectra_corr_det import SpectraCorrDet
from .variables import DEFAULT_WEIGHT, Var, Weight

EventSource = Callable[[Sequence[str], str, Set[str], Mapping[str, str]], Iterable[FluxEvent]]
PotSource = Callable[[Sequence[str], str, str], float]


class FluxReader:
    """
    Reads flux files and fills user-defined spectra.

    Parameters
    ----------
    file_wildcard : str
        Path to the input files; may contain environment variables, ``~`` and
        glob wildcards.
    num_files : int
        Maximum number of files to read after skipping; 0 reads all.
    skip_files : int
        Number of matching files to skip, in sorted order.
    event_source : callable, optional
        ``(files, tree_name, branches, overrides) -> iterable of FluxEvent``.
        Defaults to streaming the trees with uproot.
    pot_source : callable, optional
        ``(files, meta_tree, pot_branch) -> float``. Defaults to summing the
        metadata tree with uproot.
    xsec_factory : callable, optional
        Cross-section curve factory shared by the spectra added through the
        ``add_spectra_*`` helpers.
    reweight_nurays : bool, optional
        Force ray reweighting on or off. By default rays are reweighted when
        any spectrum reads the ray energy or weight.
    seed : int, optional
        Seed for the detector smearing generator.
    show_progress : bool
        Show a tqdm progress bar over entries.

    Raises
    ------
    FileNotFoundError
        If no input files remain after skipping and truncation.
    """

    def __init__(
        self,
        file_wildcard: str,
        num_files: int = 0,
        skip_files: int = 0,
        event_source: Optional[EventSource] = None,
        pot_source: Optional[PotSource] = None,
        xsec_factory: Optional[XSecFactory] = None,
        reweight_nurays: Optional[bool] = None,
        seed: Optional[int] = None,
        show_progress: bool = True,
    ):
        files = expand_wildcard(file_wildcard)

        if skip_files > len(files):
            print("[warning] The number of files to skip is larger than the number of files found.")
            files = []
        else:
            files = files[skip_files:]

        if num_files > len(files):
            print("[info] num_files is larger than the number of files found; no files will be trimmed.")
        elif num_files != 0:
            files = files[:num_files]

        print(f"[info] {len(files)} files were found matching the input criteria.")
        if not files:
            raise FileNotFoundError(f"No input flux files to run over for '{file_wildcard}'.")

        self.input_files: List[str] = files
        self.event_source = event_source
        self.pot_source = pot_source if pot_source is not None else sum_pot
        self.xsec_factory = xsec_factory if xsec_factory is not None else CrossSectionLibrary()
        self.reweight_nurays = reweight_nurays
        self.rng = np.random.default_rng(seed)
        self.show_progress = show_progress

        self.tree_name = config.DEFAULT_TREE_NAME
        self.meta_tree_name = config.DEFAULT_META_TREE_NAME
        self.pot_branch = config.DEFAULT_POT_BRANCH
        self.branch_overrides: Dict[str, str] = {}

        self.spectra: List[Spectra] = []
        self.detectors: List[Detector] = []
        self.nuray_indices: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Spectra registration
    # ------------------------------------------------------------------

    def add_spectra(self, spectra: Spectra) -> Spectra:
        """Register an already constructed spectrum. Spectra are filled in registration order."""
        self.spectra.append(spectra)
        return spectra

    def add_spectra_1d(self, params: Parameters, title: str,
                       label_x: str, bins_x: Sequence[float], var_x: Var,
                       weight: Weight = DEFAULT_WEIGHT, ext_weights: Any = None) -> Spectra1D:
        return self.add_spectra(Spectra1D(params, title, label_x, bins_x, var_x,
                                          weight, ext_weights, self.xsec_factory))

    def add_spectra_2d(self, params: Parameters, title: str,
                       label_x: str, bins_x: Sequence[float], var_x: Var,
                       label_y: str, bins_y: Sequence[float], var_y: Var,
                       weight: Weight = DEFAULT_WEIGHT, ext_weights: Any = None) -> Spectra2D:
        return self.add_spectra(Spectra2D(params, title, label_x, bins_x, var_x,
                                          label_y, bins_y, var_y,
                                          weight, ext_weights, self.xsec_factory))

    def add_spectra_3d(self, params: Parameters, title: str,
                       label_x: str, bins_x: Sequence[float], var_x: Var,
                       label_y: str, bins_y: Sequence[float], var_y: Var,
                       label_z: str, bins_z: Sequence[float], var_z: Var,
                       weight: Weight = DEFAULT_WEIGHT, ext_weights: Any = None) -> Spectra3D:
        return self.add_spectra(Spectra3D(params, title, label_x, bins_x, var_x,
                                          label_y, bins_y, var_y,
                                          label_z, bins_z, var_z,
                                          weight, ext_weights, self.xsec_factory))

    def add_spectra_corr_det(self, params: Parameters, title: str, det_x: str, det_y: str,
                             label_x: str, bins_x: Sequence[float], var_x: Var,
                             weight: Weight = DEFAULT_WEIGHT, ext_weights: Any = None) -> SpectraCorrDet:
        return self.add_spectra(SpectraCorrDet(params, title, det_x, det_y, label_x, bins_x, var_x,
                                               weight, ext_weights, self.xsec_factory))

    # ------------------------------------------------------------------
    # Non-standard input trees
    # ------------------------------------------------------------------

    def override_tree_name(self, tree_name: str):
        self.tree_name = tree_name

    def override_pot_path(self, meta_tree_name: str, pot_branch: str):
        self.meta_tree_name = meta_tree_name
        self.pot_branch = pot_branch

    def override_default_var_name(self, old_name: str, new_name: str):
        """Read the logical branch ``old_name`` from the branch ``new_name``."""
        if old_name not in config.DEFAULT_BRANCH_NAMES:
            print(f"[warning] {old_name} is not a default branch.")
            return
        self.branch_overrides[old_name] = new_name

    def is_standard_dk2nu(self) -> bool:
        return (
            not self.branch_overrides
            and self.tree_name == config.DEFAULT_TREE_NAME
            and self.meta_tree_name == config.DEFAULT_META_TREE_NAME
            and self.pot_branch == config.DEFAULT_POT_BRANCH
        )

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def branches(self) -> Set[str]:
        """Logical branches to read: those of every spectrum plus the reweighting inputs."""
        names: Set[str] = set()
        for spectra in self.spectra:
            names |= spectra.branches
        if self.needs_reweight(names):
            names |= config.REWEIGHT_BRANCHES
        return names

    def needs_reweight(self, branches: Optional[Set[str]] = None) -> bool:
        if self.reweight_nurays is not None:
            return self.reweight_nurays
        if branches is None:
            branches = set()
            for spectra in self.spectra:
                branches |= spectra.branches
        return "nuray.E" in branches or "nuray.wgt" in branches

    def set_nuray_indices(self) -> Dict[str, int]:
        """Give each distinct detector a base offset into the ray list.

        Detectors are collected from every spectrum, the first registration of
        a name winning, and ordered by name. The offset after the last detector
        is stored under ``"znull"``.
        """
        by_name: Dict[str, Detector] = {}
        for spectra in self.spectra:
            for det in spectra.detectors():
                by_name.setdefault(det.name, det)
        self.detectors = sorted(by_name.values())

        self.nuray_indices = {}
        index = 0
        for det in self.detectors:
            self.nuray_indices[det.name] = index
            index += det.n_rays
        self.nuray_indices[NURAY_END_KEY] = index
        return self.nuray_indices

    def initial_message(self):
        titles = ", ".join(s.title for s in self.spectra)
        print(f"[info] Looping over {len(self.input_files)} flux files.")
        print(f"[info] {len(self.spectra)} histogram types will be created: {titles}")
        if not self.is_standard_dk2nu():
            print(f"[info] Reading tree '{self.tree_name}' with branch overrides {self.branch_overrides}")

    def _events(self, branches: Set[str]) -> Iterable[FluxEvent]:
        if self.event_source is not None:
            return self.event_source(self.input_files, self.tree_name, branches, self.branch_overrides)
        return iter_flux_events(self.input_files, self.tree_name, branches, self.branch_overrides)

    def read_flux(self, out: Optional[HistogramDirectory] = None) -> HistogramDirectory:
        """
        Loop over every entry, fill the spectra and write them to ``out``.

        Parameters
        ----------
        out : HistogramDirectory, optional
            Destination tree; a new one is created when omitted.

        Returns
        -------
        HistogramDirectory
            ``out`` holding ``TotalPOT``, one directory per spectrum and the
            JSON manifest.
        """
        self.initial_message()
        nuray_indices = self.set_nuray_indices()
        branches = self.branches()
        reweight = self.needs_reweight(branches)
        n_rays = nuray_indices[NURAY_END_KEY]

        total_pot = self.pot_source(self.input_files, self.meta_tree_name, self.pot_branch)

        total = None
        if self.event_source is None and self.show_progress:
            total = count_entries(self.input_files, self.tree_name)

        n_entries = 0
        for event in tqdm(self._events(branches), total=total, desc="Reading flux",
                          unit=" entries", disable=not self.show_progress):
            n_entries += 1
            if not self.show_progress and n_entries % config.PROGRESS_INTERVAL == 0:
                print(f"[info] On entry {n_entries}.")

            if reweight:
                reweight_event(event, self.detectors, nuray_indices, self.rng)
            else:
                event.ensure_nurays(n_rays)

            for spectra in self.spectra:
                spectra.fill(event, nuray_indices)

        print(f"[info] Total POT: {total_pot:.6g}")
        print(f"[info] Number of entries: {n_entries}")

        if out is None:
            out = HistogramDirectory()

        pot_hist = Histogram(config.TOTAL_POT_NAME, [[0.0, 1.0]], axis_labels=("",))
        pot_hist.set_bin_content(1, total_pot)
        out.write(pot_hist)

        for spectra in self.spectra:
            spectra.write_hists(out.mkdir(spectra.title))

        out.write_string(config.MANIFEST_KEY, json.dumps(self.manifest(total_pot, n_entries)))
        return out

    def manifest(self, total_pot: float, n_entries: int) -> Dict[str, Any]:
        return {
            "version": config.MANIFEST_VERSION,
            "total_pot": total_pot,
            "entries": n_entries,
            "input_files": list(self.input_files),
            "nuray_indices": dict(self.nuray_indices),
            "spectra": [s.manifest_entry() for s in self.spectra],
        }
