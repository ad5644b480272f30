"""
Spectrum visualization.

Renders 1D spectra as step histograms and 2D spectra as heat maps, and walks
a flux reader output tree to save one figure per histogram.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import matplotlib.pyplot as plt

from .. import config
from ..core.histogram import Histogram
from ..core.output import HistogramDirectory


def plot_spectrum_1d(hist: Histogram, save_path: Optional[Union[str, Path]] = None,
                     log_y: bool = False, show: bool = False, dpi: int = config.PLOT_DPI):
    """Plot a 1D spectrum with error bars.

    Parameters
    ----------
    hist : Histogram
        One-dimensional histogram.
    save_path : str or Path, optional
        PNG file to write.
    log_y : bool
        Use a logarithmic y axis.
    show : bool
        Open an interactive window.
    dpi : int
        Resolution of the saved figure.

    Returns
    -------
    matplotlib.figure.Figure
    """
    if hist.ndim != 1:
        raise ValueError(f"'{hist.name}' has {hist.ndim} axes; expected 1.")

    values, edges = hist.to_numpy()
    inner = slice(1, -1)
    errors = np.sqrt(hist.sumw2[inner])
    centers = 0.5 * (edges[1:] + edges[:-1])

    fig, ax = plt.subplots(figsize=config.SPECTRUM_FIGSIZE)
    ax.stairs(values, edges, color='blue', linewidth=1.5, label=hist.name)
    ax.errorbar(centers, values, yerr=errors, fmt='none', ecolor='blue', alpha=0.5)
    ax.set_xlabel(hist.axis_labels[0])
    ax.set_ylabel('Weighted entries')
    ax.set_title(hist.title or hist.name)
    if log_y and np.any(values > 0):
        ax.set_yscale('log')
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    _finish(fig, save_path, show, dpi)
    return fig


def plot_spectrum_2d(hist: Histogram, save_path: Optional[Union[str, Path]] = None,
                     log_z: bool = False, show: bool = False, dpi: int = config.PLOT_DPI):
    """Plot a 2D spectrum as a colour map of the regular bins."""
    if hist.ndim != 2:
        raise ValueError(f"'{hist.name}' has {hist.ndim} axes; expected 2.")

    values, x_edges, y_edges = hist.to_numpy()

    fig, ax = plt.subplots(figsize=config.SPECTRUM_FIGSIZE)
    if log_z and np.any(values > 0):
        from matplotlib.colors import LogNorm
        norm = LogNorm(vmin=values[values > 0].min(), vmax=values.max())
    else:
        norm = None
    mesh = ax.pcolormesh(x_edges, y_edges, values.T, cmap='viridis', norm=norm)
    fig.colorbar(mesh, ax=ax, label='Weighted entries')
    ax.set_xlabel(hist.axis_labels[0])
    ax.set_ylabel(hist.axis_labels[1])
    ax.set_title(hist.title or hist.name)
    plt.tight_layout()

    _finish(fig, save_path, show, dpi)
    return fig


def plot_spectra_overlay(hists: Sequence[Histogram], labels: Optional[Sequence[str]] = None,
                         save_path: Optional[Union[str, Path]] = None,
                         log_y: bool = False, show: bool = False, dpi: int = config.PLOT_DPI):
    """Overlay several 1D spectra sharing an axis, e.g. the flavors of one detector."""
    if not hists:
        print("[warning] No spectra to overlay.")
        return None
    labels = list(labels) if labels is not None else [h.name for h in hists]

    fig, ax = plt.subplots(figsize=config.SPECTRUM_FIGSIZE)
    for hist, label in zip(hists, labels):
        values, edges = hist.to_numpy()
        ax.stairs(values, edges, linewidth=1.5, label=label)
    ax.set_xlabel(hists[0].axis_labels[0])
    ax.set_ylabel('Weighted entries')
    ax.set_title(hists[0].title)
    if log_y:
        ax.set_yscale('log')
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    _finish(fig, save_path, show, dpi)
    return fig


def plot_directory(root: HistogramDirectory, output_dir: Union[str, Path],
                   dpi: int = config.QUICK_PLOT_DPI) -> int:
    """Save a PNG for every 1D and 2D histogram of ``root``.

    Figures mirror the directory layout under ``output_dir``. 3D histograms
    are skipped.

    Returns
    -------
    int
        Number of figures written.
    """
    output_dir = Path(output_dir)
    count = 0
    for path, entry in root.walk():
        if not isinstance(entry, Histogram):
            continue
        save_path = output_dir / f"{path}.png"
        if entry.ndim == 1:
            fig = plot_spectrum_1d(entry, save_path=save_path, dpi=dpi)
        elif entry.ndim == 2:
            fig = plot_spectrum_2d(entry, save_path=save_path, dpi=dpi)
        else:
            continue
        plt.close(fig)
        count += 1
    print(f"[info] Saved {count} figures to {output_dir}")
    return count


def _finish(fig, save_path, show: bool, dpi: int):
    if save_path:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight')
        print(f"[info] Saved figure to {save_path}")
    if show:
        plt.show()
