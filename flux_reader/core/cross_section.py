"""
Neutrino cross-section tables and curve evaluation.
"""

from __future__ import annotations

import glob
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
import uproot

from .. import config
from .constants import EVENT_RATE_SCALE, NO_XSEC

XSecFactory = Callable[[int, str, str], Callable[[float], float]]

_ELEMENT_PATTERN = re.compile(r"([A-Z][a-z]?)(\d*)")


@dataclass
class XSecCurve:
    """Piecewise-linear cross section as a function of neutrino energy.

    Values outside the tabulated range take the nearest endpoint; negative
    interpolated values are clipped to zero.
    """

    energies: np.ndarray  # GeV
    values: np.ndarray  # 1e-38 cm^2, or cm^2/kton for event rates
    label: str = ""

    def __call__(self, energy: float) -> float:
        return max(float(np.interp(energy, self.energies, self.values)), 0.0)

    def evaluate(self, energies: np.ndarray) -> np.ndarray:
        return np.clip(np.interp(energies, self.energies, self.values), 0.0, None)


def constant_curve(value: float = 1.0, label: str = NO_XSEC) -> XSecCurve:
    """Flat curve over ``config.NO_XSEC_ENERGY_RANGE``."""
    e_min, e_max = config.NO_XSEC_ENERGY_RANGE
    return XSecCurve(np.array([e_min, e_max]), np.array([value, value]), label)


def load_xsec_table_from_csv(file_path: Union[str, Path]) -> np.ndarray:
    """
    Load a cross-section table from a two-column CSV file.

    The file must contain data pairs: [Energy (GeV), Cross-Section]. Up to
    three leading header lines are skipped.

    Parameters
    ----------
    file_path : str or Path
        Path to the CSV file on disk.

    Returns
    -------
    np.ndarray, shape (N, 2)
        Array of [Energy, Cross-Section] sorted by energy.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Cross section data file '{file_path}' does not exist.")

    delimiter = config.CROSS_SECTION_DELIMITER
    skip_rows = 0
    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            try:
                float(line.split(delimiter)[0])
                break
            except ValueError:
                skip_rows += 1
            if skip_rows > 3:
                break

    try:
        data = np.loadtxt(file_path, delimiter=delimiter, skiprows=skip_rows,
                          usecols=(0, 1), dtype=float, ndmin=2)
    except ValueError as e:
        raise ValueError(f"Could not load cross section table '{file_path}': {e}") from e

    if data.shape[0] < 2:
        raise ValueError(f"Cross section table '{file_path}' needs at least two rows.")

    return data[data[:, 0].argsort()]


def load_xsec_table_from_root(file_path: Union[str, Path], graph_name: str) -> np.ndarray:
    """
    Load a cross-section graph from a GENIE spline ROOT file.

    Parameters
    ----------
    file_path : str or Path
        GENIE ``xsec_graphs_*.root`` file.
    graph_name : str
        Path of the TGraph inside the file, e.g. ``"nu_mu_C12/tot_cc"``.

    Returns
    -------
    np.ndarray, shape (N, 2)
        Array of [Energy, Cross-Section] sorted by energy.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Cross section file '{file_path}' does not exist.")

    with uproot.open(file_path) as f:
        if graph_name not in f:
            raise FileNotFoundError(f"No graph '{graph_name}' in cross section file '{file_path}'.")
        x, y = f[graph_name].values(axis="both")

    data = np.stack([np.asarray(x, dtype=float), np.asarray(y, dtype=float)], axis=1)
    if data.shape[0] < 2:
        raise ValueError(f"Cross section graph '{graph_name}' needs at least two points.")

    return data[data[:, 0].argsort()]


def find_genie_xsec_file(xsec_dir: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """First GENIE spline file in ``xsec_dir`` (default ``$GENIEXSECPATH``), or None."""
    if xsec_dir is None:
        xsec_dir = os.environ.get(config.GENIE_XSEC_ENV)
        if not xsec_dir:
            return None
    files = sorted(glob.glob(os.path.join(str(xsec_dir), config.GENIE_XSEC_PATTERN)))
    if not files:
        print(f"[warning] No file matching {config.GENIE_XSEC_PATTERN} in {xsec_dir}.")
        return None
    if len(files) > 1:
        print(f"[info] More than one GENIE cross section file found, using {files[0]}:")
        for name in files:
            print(f"         {name}")
    return Path(files[0])


def parse_compound(compound: str) -> Dict[str, int]:
    """Atom counts of a chemical formula, e.g. ``"CH2"`` -> ``{"C": 1, "H": 2}``."""
    counts: Dict[str, int] = {}
    position = 0
    for match in _ELEMENT_PATTERN.finditer(compound):
        if match.start() != position:
            break
        element, number = match.group(1), match.group(2)
        counts[element] = counts.get(element, 0) + (int(number) if number else 1)
        position = match.end()
    if not counts or position != len(compound):
        raise ValueError(
            f"Invalid target '{compound}'. Each atom should have correct capitalization, e.g. CH2."
        )
    return counts


class CrossSectionLibrary:
    """Cross sections from a GENIE spline file or from tables laid out like one.

    Curves are named ``<nu name><isotope>/<type>``, e.g. ``nu_mu_C12/tot_cc``.
    With a GENIE ``xsec_graphs_*.root`` file that is the TGraph path inside
    the file; otherwise it is ``<data_dir>/nu_mu_C12/tot_cc.csv``. Compound
    targets are built as atom-count weighted sums of their elements. An
    instance is a valid ``xsec_factory`` for the spectra.

    Parameters
    ----------
    data_dir : str or Path, optional
        Root of the CSV tables. When given, tables are always read from it.
    event_rate : bool
        Scale curves to an event rate per kiloton of target.
    verbose : bool
        Print a message when an electron-scattering type is swapped.
    xsec_file : str or Path, optional
        GENIE spline file to use instead of the one found in
        ``$GENIEXSECPATH``. Must have a ``.root`` extension.

    Notes
    -----
    Without ``data_dir`` or ``xsec_file`` the first ``xsec_graphs_*_*.root``
    file in ``$GENIEXSECPATH`` is used; if there is none the tables under
    ``config.CROSS_SECTION_DIR`` are read.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        event_rate: bool = False,
        verbose: bool = True,
        xsec_file: Optional[Union[str, Path]] = None,
    ):
        self.event_rate = event_rate
        self.verbose = verbose
        self.xsec_file: Optional[Path] = None
        if xsec_file is not None:
            self.set_xsec_file(xsec_file)
        elif data_dir is None:
            self.xsec_file = find_genie_xsec_file()
        self.data_dir = Path(data_dir) if data_dir is not None else config.CROSS_SECTION_DIR
        self._cache: Dict[Tuple[int, str, str], XSecCurve] = {}

    def __call__(self, pdg: int, target: str, label: str) -> XSecCurve:
        return self.get_xsec(pdg, target, label)

    def set_xsec_file(self, path: Union[str, Path]):
        """Read curves from the GENIE spline file ``path``."""
        path = Path(path)
        if path.suffix != ".root":
            raise ValueError(f"Cross section file '{path}' does not have a .root extension.")
        if self.verbose:
            print(f"[warning] Overriding the GENIE cross section file with {path}.")
        self.xsec_file = path
        self._cache = {}

    @staticmethod
    def list_int_types():
        for int_type in sorted(config.KNOWN_INTERACTION_TYPES):
            print(int_type)

    def molar_mass(self, target: str) -> float:
        """Molar mass of an element or compound (g/mol)."""
        total = 0.0
        for element, count in parse_compound(target).items():
            if element not in config.MOLAR_MASS:
                raise ValueError(f"No molar mass known for element '{element}'.")
            total += count * config.MOLAR_MASS[element]
        return total

    def _check_electron_scattering(self, label: str, pdg: int) -> str:
        if label == "ve_nc" and abs(pdg) == 12:
            if self.verbose:
                print("[info] ve_nc is not available for electron neutrinos; using ve_ccncmix.")
            return "ve_ccncmix"
        if label == "ve_ccncmix" and abs(pdg) != 12:
            if self.verbose:
                print("[info] ve_ccncmix is only available for electron neutrinos; using ve_nc.")
            return "ve_nc"
        return label

    def graph_name(self, pdg: int, element: str, label: str) -> str:
        if pdg not in config.NU_DIR_NAMES:
            valid = ", ".join(str(p) for p in config.NU_DIR_NAMES)
            raise ValueError(f"Invalid neutrino PDG {pdg}. Valid: {valid}")
        if element not in config.TARGET_ISOTOPES:
            valid = ", ".join(config.TARGET_ISOTOPES)
            raise ValueError(f"Invalid target '{element}'. Valid: {valid}")
        if label not in config.KNOWN_INTERACTION_TYPES:
            raise ValueError(
                f"Invalid interaction type '{label}'. For the most general CC or NC, "
                "use tot_cc or tot_nc."
            )
        return f"{config.NU_DIR_NAMES[pdg]}{config.TARGET_ISOTOPES[element]}/{label}"

    def table_path(self, pdg: int, element: str, label: str) -> Path:
        return self.data_dir / f"{self.graph_name(pdg, element, label)}.csv"

    def load_element(self, pdg: int, element: str, label: str) -> np.ndarray:
        """[Energy, Cross-Section] table of a single element."""
        if self.xsec_file is not None:
            return load_xsec_table_from_root(self.xsec_file, self.graph_name(pdg, element, label))
        return load_xsec_table_from_csv(self.table_path(pdg, element, label))

    def get_table(self, pdg: int, target: str, label: str) -> np.ndarray:
        """[Energy, Cross-Section] table for ``target``, summed over its atoms."""
        label = self._check_electron_scattering(label, pdg)
        counts = parse_compound(target)

        tables = {element: self.load_element(pdg, element, label) for element in counts}
        if len(tables) == 1:
            (element, table), = tables.items()
            combined = table.copy()
            combined[:, 1] *= counts[element]
        else:
            energies = np.unique(np.concatenate([t[:, 0] for t in tables.values()]))
            values = np.zeros_like(energies)
            for element, table in tables.items():
                values += counts[element] * np.interp(energies, table[:, 0], table[:, 1])
            combined = np.stack([energies, values], axis=1)

        if self.event_rate:
            combined[:, 1] *= EVENT_RATE_SCALE / self.molar_mass(target)

        return combined

    def get_xsec(self, pdg: int, target: str, label: str) -> XSecCurve:
        """Curve for neutrino ``pdg`` on ``target`` for interaction ``label``."""
        key = (pdg, target, label)
        if key not in self._cache:
            if label == NO_XSEC:
                self._cache[key] = constant_curve()
            else:
                table = self.get_table(pdg, target, label)
                self._cache[key] = XSecCurve(table[:, 0], table[:, 1], label)
        return self._cache[key]
