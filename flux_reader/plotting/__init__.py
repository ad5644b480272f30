"""
Plotting subpackage for flux reader output.

Example usage:
    from flux_reader.core import read_root_file
    from flux_reader.plotting import plot_spectrum_1d, plot_directory

    root = read_root_file('flux_out.root')
    plot_spectrum_1d(root['enu/D1/enu_numu_pi_NoXSec_D1'], save_path='Figures/enu.png')
    plot_directory(root, 'Figures')
"""

from .spectra import (
    plot_spectrum_1d,
    plot_spectrum_2d,
    plot_spectra_overlay,
    plot_directory,
)

__all__ = [
    "plot_spectrum_1d",
    "plot_spectrum_2d",
    "plot_spectra_overlay",
    "plot_directory",
]
