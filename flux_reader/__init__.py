"""
Flux Reader Package
===================

This package turns simulated neutrino flux ntuples (dk2nu trees) into
weighted histograms sliced by neutrino flavor, parent species, cross-section
type and detector.

Modules:
--------
- config: Configurable constants (tree names, cross-section paths, plotting)
- core: Parameters, spectra, event loop, combiner and ROOT I/O
- plotting: matplotlib rendering of spectra
- runner: Command-line entry point

Example:
--------
    from flux_reader import FluxReader, Parameters, ENERGY, get_preset_detector

    params = Parameters()
    params.add_detector(get_preset_detector("NOvA-ND"))

    reader = FluxReader("$FLUX_DIR/*.dk2nu.root", num_files=10)
    reader.add_spectra_1d(params, "enu", "E (GeV)", [0, 1, 2, 3, 4, 5], ENERGY)
    root = reader.read_flux()
"""

from . import config
from .core import *
from .core import __all__ as _core_all

__version__ = "0.1.0"
__all__ = ["config"] + list(_core_all)
