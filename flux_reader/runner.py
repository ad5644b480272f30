"""
Flux Reader Runner Module

This module provides the command-line entry point and the run functions it
calls: ``read`` fills energy spectra at preset detectors from dk2nu files,
``combine`` adds flavor/parent sums to an existing output file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from . import config
from .core.combiner import Combiner
from .core.cross_section import CrossSectionLibrary
from .core.detectors import get_preset_detector
from .core.flux_reader import FluxReader
from .core.io_utils import export_directory_to_csv, write_root_file
from .core.output import HistogramDirectory
from .core.parameters import Parameters
from .core.variables import ENERGY, PT, PZ
from .plotting import plot_directory


def build_parameters(
    detectors: Sequence[str],
    xsecs: Sequence[str] = ("NoXSec",),
    sign_sensitive: bool = True,
    uses: int = 1,
    ancestor_tgt: bool = False,
) -> Parameters:
    """Default flavors and parents, the given cross sections and preset detectors."""
    params = Parameters(sign_sensitive=sign_sensitive)
    for xsec in list(params.xsecs):
        if xsec not in xsecs:
            params.remove_xsec(xsec)
    for xsec in xsecs:
        if xsec not in params.xsecs:
            params.add_xsec(xsec)

    for name in detectors:
        det = get_preset_detector(name)
        det.uses = uses
        params.add_detector(det)

    if ancestor_tgt:
        params.set_ancestor_tgt()
    return params


def run_read_flux(
    file_wildcard: str,
    output_path: Path,
    detectors: Sequence[str],
    n_bins: int = 100,
    e_max: float = 20.0,
    xsecs: Sequence[str] = ("NoXSec",),
    num_files: int = 0,
    skip_files: int = 0,
    sign_sensitive: bool = True,
    uses: int = 1,
    ancestor_tgt: bool = False,
    pt_pz: bool = False,
    seed: Optional[int] = None,
    csv_dir: Optional[Path] = None,
    plot_dir: Optional[Path] = None,
    show_progress: bool = True,
    xsec_file: Optional[Path] = None,
) -> HistogramDirectory:
    """Read flux files and write energy spectra at preset detectors.

    Parameters
    ----------
    file_wildcard : str
        Input files; glob wildcards and environment variables are expanded.
    output_path : Path
        ROOT file to write.
    detectors : sequence of str
        Names of preset detectors (see ``core.detectors.PRESET_DETECTORS``).
    n_bins, e_max : int, float
        Uniform energy binning from 0 to ``e_max`` GeV.
    xsecs : sequence of str
        Cross-section labels.
    pt_pz : bool
        Also fill the parent (pT, pz) spectrum at decay.
    csv_dir, plot_dir : Path, optional
        Export every histogram as CSV and/or PNG.
    xsec_file : Path, optional
        GENIE spline file overriding the one found in ``$GENIEXSECPATH``.

    Returns
    -------
    HistogramDirectory
        The output tree that was written.
    """
    params = build_parameters(detectors, xsecs, sign_sensitive, uses, ancestor_tgt)
    print("[info] Parameters:")
    print(params.describe())

    xsec_factory = CrossSectionLibrary(xsec_file=xsec_file) if xsec_file is not None else None
    reader = FluxReader(file_wildcard, num_files=num_files, skip_files=skip_files,
                        xsec_factory=xsec_factory, seed=seed, show_progress=show_progress)

    energy_bins = np.linspace(0.0, e_max, n_bins + 1)
    reader.add_spectra_1d(params, "enu", "E_{#nu} (GeV)", energy_bins, ENERGY)
    if pt_pz:
        reader.add_spectra_2d(params, "ptpz",
                              "p_{T} (GeV)", np.linspace(0.0, 1.0, 51), PT,
                              "p_{z} (GeV)", np.linspace(0.0, 120.0, 121), PZ)

    root = reader.read_flux()
    write_root_file(root, output_path)

    if csv_dir is not None:
        export_directory_to_csv(root, csv_dir)
    if plot_dir is not None:
        print("[info] Generating visualizations...")
        plot_directory(root, plot_dir)
        print("[info] Visualization complete!")

    return root


def run_combine(path: Path, mode: str = "all", output_path: Optional[Path] = None) -> Combiner:
    """Add combined histograms to a flux reader output.

    ``mode`` is ``"all"``, ``"flavors"`` or ``"parents"``. The result is
    written to ``output_path``, or back to ``path``.
    """
    combiner = Combiner(path)
    if mode == "flavors":
        combiner.combine_nu_flavs()
    elif mode == "parents":
        combiner.combine_parents()
    elif mode == "all":
        combiner.combine_all()
    else:
        raise ValueError(f"Unknown combine mode '{mode}'; expected all, flavors or parents.")
    combiner.save(output_path)
    return combiner


def main(argv: Optional[Sequence[str]] = None):
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Fill and combine neutrino flux spectra")
    subparsers = parser.add_subparsers(dest="command", required=True)

    read = subparsers.add_parser("read", help="Read flux files and write spectra")
    read.add_argument("files", help="Input file wildcard, e.g. '$FLUX_DIR/*.dk2nu.root'")
    read.add_argument("-o", "--output", type=Path, default=Path("flux_spectra.root"),
                      help="Output ROOT file")
    read.add_argument("-d", "--detector", action="append", dest="detectors", required=True,
                      help="Preset detector name (repeatable)")
    read.add_argument("--xsec", action="append", dest="xsecs", default=None,
                      help=f"Cross-section label (repeatable, default {config.DEFAULT_XSECS[0]})")
    read.add_argument("--xsec-file", type=Path, default=None,
                      help="GENIE xsec_graphs ROOT file (default: first one in $GENIEXSECPATH)")
    read.add_argument("--bins", type=int, default=100, help="Number of energy bins")
    read.add_argument("--e-max", type=float, default=20.0, help="Upper energy edge (GeV)")
    read.add_argument("--num-files", type=int, default=0, help="Read at most this many files")
    read.add_argument("--skip-files", type=int, default=0, help="Skip this many files")
    read.add_argument("--uses", type=int, default=1, help="Rays per detector")
    read.add_argument("--unsigned", action="store_true", help="Ignore the sign of parent PDG codes")
    read.add_argument("--by-target-ancestor", action="store_true",
                      help="Split by the ancestor leaving the target instead of the direct parent")
    read.add_argument("--pt-pz", action="store_true", help="Also fill the parent pT/pz spectrum")
    read.add_argument("--seed", type=int, default=None, help="Seed for detector smearing")
    read.add_argument("--csv-dir", type=Path, default=None, help="Export histograms as CSV")
    read.add_argument("--plot", type=Path, nargs="?", const=Path(config.FIGURES_OUTPUT_DIR),
                      default=None, help="Save PNG figures (default directory: Figures)")
    read.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    combine = subparsers.add_parser("combine", help="Add flavor/parent sums to an output file")
    combine.add_argument("file", type=Path, help="Flux reader output ROOT file")
    combine.add_argument("-o", "--output", type=Path, default=None,
                         help="Write to this file instead of updating the input")
    group = combine.add_mutually_exclusive_group()
    group.add_argument("--all", action="store_const", const="all", dest="mode",
                       help="Combine flavors, parents and both (default)")
    group.add_argument("--flavors", action="store_const", const="flavors", dest="mode",
                       help="Combine neutrino flavors only")
    group.add_argument("--parents", action="store_const", const="parents", dest="mode",
                       help="Combine parents only")

    args = parser.parse_args(argv)

    if args.command == "read":
        run_read_flux(
            file_wildcard=args.files,
            output_path=args.output,
            detectors=args.detectors,
            n_bins=args.bins,
            e_max=args.e_max,
            xsecs=args.xsecs or (config.DEFAULT_XSECS[0],),
            num_files=args.num_files,
            skip_files=args.skip_files,
            sign_sensitive=not args.unsigned,
            uses=args.uses,
            ancestor_tgt=args.by_target_ancestor,
            pt_pz=args.pt_pz,
            seed=args.seed,
            csv_dir=args.csv_dir,
            plot_dir=args.plot,
            show_progress=not args.no_progress,
            xsec_file=args.xsec_file,
        )
    else:
        run_combine(args.file, mode=args.mode or "all", output_path=args.output)


if __name__ == "__main__":
    main()
