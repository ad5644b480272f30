"""
Post-hoc combination of a flux reader output.

The parameter set of each spectrum is rebuilt from the directory layout and
the ``title_flav_par_xsec_det`` histogram names, then histograms are summed
across flavors and/or parents and written beside the originals with the
``allnu``/``allpar`` markers.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .constants import ALL_NU, ALL_PAR, NAME_SEP
from .data_classes import Detector
from .histogram import Histogram
from .io_utils import read_manifest, read_root_file, write_root_file
from .output import HistogramDirectory
from .parameters import Parameters
from .particles import NuFlav, Parent, all_nu_flavs


@dataclass
class CombinedSpectra:
    """One spectrum directory and the parameters rebuilt from it."""

    title: str
    directory: HistogramDirectory
    params: Parameters

    def hist_name(self, flav: str, parent: str, xsec: str, det: str) -> str:
        return NAME_SEP.join((self.title, flav, parent, xsec, det))

    def det_dir(self, i_det: int) -> HistogramDirectory:
        return self.directory[self.params.detectors[i_det].name]


class Combiner:
    """
    Sum the histograms of a flux reader output over flavors and parents.

    Parameters
    ----------
    source : str, Path or HistogramDirectory
        Output ROOT file, or a tree already in memory.
    verbose : bool
        Print what was found and what was combined.

    Notes
    -----
    Detector-correlated spectra (directories without detector
    subdirectories) are left untouched.
    """

    def __init__(self, source: Union[str, Path, HistogramDirectory], verbose: bool = True):
        self.verbose = verbose
        if isinstance(source, HistogramDirectory):
            self.path: Optional[Path] = None
            self.root = source
        else:
            self.path = Path(source)
            self.root = read_root_file(self.path)

        self.spectra: List[CombinedSpectra] = []
        for directory in self.root.subdirectories():
            spectra = self._reconstruct(directory)
            if spectra is not None:
                self.spectra.append(spectra)

        self._check_manifest()
        if self.verbose:
            self.initial_message()

    # ------------------------------------------------------------------
    # Reconstruction
    # ------------------------------------------------------------------

    def _reconstruct(self, directory: HistogramDirectory) -> Optional[CombinedSpectra]:
        det_dirs = directory.subdirectories()
        if not det_dirs:
            if self.verbose:
                print(f"[info] Skipping '{directory.name}': no detector directories (correlated spectrum).")
            return None

        title = directory.name
        first_det = det_dirs[0].name
        prefix = title + NAME_SEP
        suffix = NAME_SEP + first_det

        catalog = all_nu_flavs()
        found_flavs, parent_names, xsecs = set(), set(), set()
        for name in det_dirs[0].histogram_names():
            if not (name.startswith(prefix) and name.endswith(suffix)):
                continue
            parts = name[len(prefix):len(name) - len(suffix)].split(NAME_SEP, 2)
            if len(parts) != 3:
                continue
            flav, parent, xsec = parts
            if flav == ALL_NU or parent == ALL_PAR:
                continue
            if not any(f.name == flav for f in catalog):
                print(f"[warning] Unknown neutrino flavor '{flav}' in histogram '{name}'.")
                continue
            found_flavs.add(flav)
            parent_names.add(parent)
            xsecs.add(xsec)

        if not found_flavs:
            print(f"[warning] No histograms named like '{title}_flav_par_xsec_det' in '{title}'.")
            return None

        nu_flavs: List[NuFlav] = [f for f in catalog if f.name in found_flavs]
        parents = [Parent(name, i) for i, name in enumerate(sorted(parent_names))]
        detectors = sorted(Detector(d.name, "", uses=0) for d in det_dirs)
        params = Parameters.from_components(nu_flavs, parents, sorted(xsecs), detectors,
                                            verbose=self.verbose)
        return CombinedSpectra(title, directory, params)

    def _check_manifest(self):
        manifest = read_manifest(self.root)
        if manifest is None:
            return
        entries = {e.get("title"): e for e in manifest.get("spectra", [])}
        for spectra in self.spectra:
            entry = entries.get(spectra.title)
            if entry is None:
                print(f"[warning] Spectrum '{spectra.title}' is not listed in the manifest.")
                continue
            p = spectra.params
            expected = {
                "nu_flavs": len(entry.get("nu_flavs", [])),
                "parents": len(entry.get("parents", [])),
                "xsecs": len(entry.get("xsecs", [])),
                "detectors": len(entry.get("detectors", [])),
            }
            found = {"nu_flavs": p.n_flav, "parents": p.n_par, "xsecs": p.n_xsec, "detectors": p.n_det}
            for key, count in expected.items():
                if found[key] != count:
                    print(f"[warning] '{spectra.title}': manifest lists {count} {key}, "
                          f"histogram names give {found[key]}.")

    def initial_message(self):
        print(f"[info] Found {len(self.spectra)} spectra to combine.")
        for spectra in self.spectra:
            print(f"[info] {spectra.title}:")
            for line in spectra.params.describe().splitlines()[:-1]:
                print(f"         {line}")

    # ------------------------------------------------------------------
    # Combination
    # ------------------------------------------------------------------

    def _combine_already_called(self, marker: str) -> bool:
        """True when a spectrum histogram already carries ``marker`` as a name segment.

        Only the detector directories of the reconstructed spectra are searched;
        correlated spectra always hold their own combined histograms.
        """
        token = NAME_SEP + marker + NAME_SEP
        for spectra in self.spectra:
            for path, entry in spectra.directory.walk(spectra.title):
                if isinstance(entry, Histogram) and token in entry.name:
                    if self.verbose:
                        print(f"[info] Histograms with '{marker}' already exist (e.g. {path}); nothing to do.")
                    return True
        return False

    @staticmethod
    def _sum(directory: HistogramDirectory, names: Sequence[str], new_name: str) -> Histogram:
        total = directory[names[0]].clone(new_name)
        for name in names[1:]:
            total.add(directory[name])
        return total

    def combine_nu_flavs(self):
        """Write one ``allnu`` histogram per (detector, cross section, parent)."""
        if self._combine_already_called(ALL_NU):
            return
        for spectra in self.spectra:
            p = spectra.params
            for i_det, det in enumerate(p.detectors):
                directory = spectra.det_dir(i_det)
                for xsec in p.xsecs:
                    for parent in p.parents:
                        names = [spectra.hist_name(f.name, parent.name, xsec, det.name) for f in p.nu_flavs]
                        new_name = spectra.hist_name(ALL_NU, parent.name, xsec, det.name)
                        directory.write(self._sum(directory, names, new_name))
        if self.verbose:
            print("[info] Combined neutrino flavors.")

    def combine_parents(self):
        """Write one ``allpar`` histogram per (detector, cross section, flavor)."""
        if self._combine_already_called(ALL_PAR):
            return
        for spectra in self.spectra:
            p = spectra.params
            for i_det, det in enumerate(p.detectors):
                directory = spectra.det_dir(i_det)
                for xsec in p.xsecs:
                    for flav in p.nu_flavs:
                        names = [spectra.hist_name(flav.name, par.name, xsec, det.name) for par in p.parents]
                        new_name = spectra.hist_name(flav.name, ALL_PAR, xsec, det.name)
                        directory.write(self._sum(directory, names, new_name))
        if self.verbose:
            print("[info] Combined parents.")

    def combine_all(self):
        """Combine flavors and parents, then sum the parent-combined histograms over flavors."""
        marker = ALL_NU + NAME_SEP + ALL_PAR
        if self._combine_already_called(marker):
            return
        self.combine_nu_flavs()
        self.combine_parents()
        for spectra in self.spectra:
            p = spectra.params
            for i_det, det in enumerate(p.detectors):
                directory = spectra.det_dir(i_det)
                for xsec in p.xsecs:
                    names = [spectra.hist_name(f.name, ALL_PAR, xsec, det.name) for f in p.nu_flavs]
                    new_name = spectra.hist_name(ALL_NU, ALL_PAR, xsec, det.name)
                    directory.write(self._sum(directory, names, new_name))
        if self.verbose:
            print("[info] Combined neutrino flavors and parents.")

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def n_hists(self) -> int:
        return sum(1 for _, entry in self.root.walk() if isinstance(entry, Histogram))

    def spectra_by_title(self) -> Dict[str, CombinedSpectra]:
        return {s.title: s for s in self.spectra}

    def save(self, path: Optional[Union[str, Path]] = None):
        """Write the updated tree to ``path``, or back to the source file."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No output path given and the combiner was not built from a file.")
        write_root_file(self.root, target)
