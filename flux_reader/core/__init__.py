"""
Flux reader core modules.

This subpackage holds the core functionality:
- constants: weight correction and name sentinels
- particles: neutrino flavor and parent catalogs
- data_classes: Detector, NuRay, Ancestor, FluxEvent
- detectors: preset detector locations
- indices: mixed-radix (flavor, parent, xsec, detector) index
- parameters: the parameter set that slices a flux
- histogram: 1-3 dimensional weighted histograms
- output: in-memory histogram directory tree
- variables: histogrammed quantities and weight functions
- cross_section: cross-section tables and curves
- reweight: ray reweighting toward detectors
- spectra, spectra_corr_det: histogram families filled per entry
- flux_reader: the event loop
- combiner: post-hoc flavor/parent sums
- io_utils: ROOT and CSV input/output
"""

# Constants
from .constants import (
    DEFAULT_WEIGHT_CORRECTION,
    EVENT_RATE_SCALE,
    NO_XSEC,
    ALL_NU,
    ALL_PAR,
    NURAY_END_KEY,
)

# Particles
from .particles import (
    ParticleParam,
    NuFlav,
    Parent,
    all_nu_flavs,
    all_parents,
)

# Data classes
from .data_classes import (
    Detector,
    NuRay,
    Ancestor,
    FluxEvent,
)

# Detectors
from .detectors import (
    PRESET_DETECTORS,
    get_preset_detector,
)

# Parameters and indices
from .indices import Indices
from .parameters import Parameters

# Histograms
from .histogram import Histogram
from .output import HistogramDirectory

# Variables and weights
from .variables import (
    Var,
    Weight,
    make_var,
    make_weight,
    ENERGY,
    PT,
    PZ,
    TARGET_EXIT_PT,
    TARGET_EXIT_PZ,
    DEFAULT_WEIGHT,
    NO_WEIGHT,
    EXT_WEIGHT_BY_PT_PZ,
    constant_weight,
)

# Cross sections
from .cross_section import (
    XSecCurve,
    CrossSectionLibrary,
    constant_curve,
    load_xsec_table_from_csv,
    load_xsec_table_from_root,
    find_genie_xsec_file,
)

# Reweighting
from .reweight import (
    smear,
    to_beam_coords,
    calc_enu_wgt,
    reweight_event,
)

# Spectra
from .spectra import Spectra, Spectra1D, Spectra2D, Spectra3D
from .spectra_corr_det import SpectraCorrDet

# Event loop and combination
from .flux_reader import FluxReader
from .combiner import Combiner

# IO
from .io_utils import (
    iter_flux_events,
    sum_pot,
    read_root_file,
    write_root_file,
    read_manifest,
    export_histogram_to_csv,
    export_directory_to_csv,
)

__all__ = [
    # Constants
    "DEFAULT_WEIGHT_CORRECTION",
    "EVENT_RATE_SCALE",
    "NO_XSEC",
    "ALL_NU",
    "ALL_PAR",
    "NURAY_END_KEY",
    # Particles
    "ParticleParam",
    "NuFlav",
    "Parent",
    "all_nu_flavs",
    "all_parents",
    # Data classes
    "Detector",
    "NuRay",
    "Ancestor",
    "FluxEvent",
    # Detectors
    "PRESET_DETECTORS",
    "get_preset_detector",
    # Parameters
    "Indices",
    "Parameters",
    # Histograms
    "Histogram",
    "HistogramDirectory",
    # Variables
    "Var",
    "Weight",
    "make_var",
    "make_weight",
    "ENERGY",
    "PT",
    "PZ",
    "TARGET_EXIT_PT",
    "TARGET_EXIT_PZ",
    "DEFAULT_WEIGHT",
    "NO_WEIGHT",
    "EXT_WEIGHT_BY_PT_PZ",
    "constant_weight",
    # Cross sections
    "XSecCurve",
    "CrossSectionLibrary",
    "constant_curve",
    "load_xsec_table_from_csv",
    "load_xsec_table_from_root",
    "find_genie_xsec_file",
    # Reweighting
    "smear",
    "to_beam_coords",
    "calc_enu_wgt",
    "reweight_event",
    # Spectra
    "Spectra",
    "Spectra1D",
    "Spectra2D",
    "Spectra3D",
    "SpectraCorrDet",
    # Event loop
    "FluxReader",
    "Combiner",
    # IO
    "iter_flux_events",
    "sum_pot",
    "read_root_file",
    "write_root_file",
    "read_manifest",
    "export_histogram_to_csv",
    "export_directory_to_csv",
]
