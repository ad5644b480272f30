"""
Data import/export utilities for the flux reader.

ROOT files are read and written through uproot. Flux entries are streamed
from the input trees chunk by chunk; output histogram trees are converted to
and from ``HistogramDirectory``.
"""

from __future__ import annotations

import csv
import glob
import json
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

import numpy as np
import uproot

from .. import config
from .data_classes import Ancestor, FluxEvent, NuRay
from .histogram import Histogram
from .output import HistogramDirectory

PathLike = Union[str, Path]

# FluxEvent scalar fields and their types
_SCALAR_FIELDS = {
    "ntype": int,
    "ptype": int,
    "nimpwt": float,
    "vx": float,
    "vy": float,
    "vz": float,
    "pdpx": float,
    "pdpy": float,
    "pdpz": float,
    "ppdxdz": float,
    "ppdydz": float,
    "pppz": float,
    "ppenergy": float,
    "muparpx": float,
    "muparpy": float,
    "muparpz": float,
    "mupare": float,
    "necm": float,
    "tptype": int,
    "tpx": float,
    "tpy": float,
    "tpz": float,
}

_ANCESTOR_FIELDS = {
    "ancestor.pdg": "pdg",
    "ancestor.stoppx": "stoppx",
    "ancestor.stoppy": "stoppy",
    "ancestor.stoppz": "stoppz",
}


# =============================================================================
# Input files
# =============================================================================

def expand_wildcard(pattern: str) -> List[str]:
    """Existing files matching ``pattern`` after variable and ``~`` expansion, sorted."""
    expanded = os.path.expanduser(os.path.expandvars(pattern))
    return sorted(p for p in glob.glob(expanded) if os.path.isfile(p))


def resolve_branch_names(
    branches: Iterable[str],
    overrides: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Map logical branch keys to the branch names found in the tree."""
    overrides = overrides or {}
    resolved = {}
    for key in sorted(branches):
        resolved[key] = overrides.get(key, config.DEFAULT_BRANCH_NAMES.get(key, key))
    return resolved


def sum_pot(files: Sequence[PathLike], meta_tree: str = config.DEFAULT_META_TREE_NAME,
            pot_branch: str = config.DEFAULT_POT_BRANCH) -> float:
    """Sum protons on target over the metadata tree of every file."""
    if not files:
        return 0.0
    total = 0.0
    sources = [f"{f}:{meta_tree}" for f in files]
    for chunk in uproot.iterate(sources, filter_name=[pot_branch], library="np",
                                step_size=config.ITERATE_STEP_SIZE):
        total += float(np.sum(chunk[pot_branch]))
    return total


def count_entries(files: Sequence[PathLike], tree_name: str = config.DEFAULT_TREE_NAME) -> int:
    total = 0
    for path in files:
        with uproot.open(f"{path}:{tree_name}") as tree:
            total += tree.num_entries
    return total


def _event_from_chunk(chunk: Mapping[str, np.ndarray], names: Mapping[str, str], i: int) -> FluxEvent:
    kwargs = {}
    for key, cast in _SCALAR_FIELDS.items():
        if key in names:
            kwargs[key] = cast(chunk[names[key]][i])
    kwargs.setdefault("ntype", 0)
    kwargs.setdefault("ptype", 0)

    event = FluxEvent(**kwargs)

    if "nuray.E" in names or "nuray.wgt" in names:
        energies = chunk[names["nuray.E"]][i] if "nuray.E" in names else []
        weights = chunk[names["nuray.wgt"]][i] if "nuray.wgt" in names else []
        n_rays = max(len(energies), len(weights))
        event.nurays = [
            NuRay(
                energy=float(energies[j]) if j < len(energies) else 0.0,
                weight=float(weights[j]) if j < len(weights) else 0.0,
            )
            for j in range(n_rays)
        ]

    ancestor_keys = [k for k in _ANCESTOR_FIELDS if k in names]
    if ancestor_keys:
        columns = {_ANCESTOR_FIELDS[k]: chunk[names[k]][i] for k in ancestor_keys}
        n_anc = min(len(c) for c in columns.values())
        event.ancestors = [
            Ancestor(**{
                field: (int(values[j]) if field == "pdg" else float(values[j]))
                for field, values in columns.items()
            })
            for j in range(n_anc)
        ]

    return event


def iter_flux_events(
    files: Sequence[PathLike],
    tree_name: str = config.DEFAULT_TREE_NAME,
    branches: Iterable[str] = config.DEFAULT_BRANCHES,
    overrides: Optional[Mapping[str, str]] = None,
    step_size: Union[int, str] = config.ITERATE_STEP_SIZE,
) -> Iterator[FluxEvent]:
    """
    Stream flux entries from the flux tree of every file.

    Parameters
    ----------
    files : sequence of path
        Input ROOT files, read in order.
    tree_name : str
        Path of the flux tree inside each file.
    branches : iterable of str
        Logical branch keys (see ``config.DEFAULT_BRANCH_NAMES``) to read.
    overrides : mapping, optional
        Logical key -> branch name for trees that do not follow dk2nu naming.
    step_size : int or str
        Chunk size passed to ``uproot.iterate``.

    Yields
    ------
    FluxEvent
        One record per tree entry. Fields whose branch was not requested keep
        their defaults.
    """
    names = resolve_branch_names(branches, overrides)
    sources = [f"{f}:{tree_name}" for f in files]
    wanted = sorted(set(names.values()))
    for chunk in uproot.iterate(sources, filter_name=wanted, library="np", step_size=step_size):
        missing = [name for name in wanted if name not in chunk]
        if missing:
            raise KeyError(f"Tree '{tree_name}' has no branch(es): {', '.join(missing)}")
        n_entries = len(chunk[wanted[0]]) if wanted else 0
        for i in range(n_entries):
            yield _event_from_chunk(chunk, names, i)


# =============================================================================
# Histogram files
# =============================================================================

def _axis(name: str, title: str, edges: np.ndarray):
    return uproot.writing.identify.to_TAxis(
        fName=name,
        fTitle=title,
        fNbins=len(edges) - 1,
        fXmin=float(edges[0]),
        fXmax=float(edges[-1]),
        fXbins=np.asarray(edges, dtype=np.float64),
    )


def _to_writable(hist: Histogram):
    """Convert to an uproot TH1D/TH2D/TH3D model, flow bins included."""
    # ROOT stores bins with the x index varying fastest
    data = np.ravel(hist.values, order="F").astype(np.float64)
    sumw2 = np.ravel(hist.sumw2, order="F").astype(np.float64)

    inner = tuple(slice(1, -1) for _ in hist.edges)
    values = hist.values[inner]
    centers = [0.5 * (e[1:] + e[:-1]) for e in hist.edges]
    grids = np.meshgrid(*centers, indexing="ij")

    tsumw = float(values.sum())
    tsumw2 = float(hist.sumw2[inner].sum())
    axes = [_axis(f"{'xyz'[i]}axis", hist.axis_labels[i], e) for i, e in enumerate(hist.edges)]
    moments = []
    for grid in grids:
        moments.extend([float((values * grid).sum()), float((values * grid * grid).sum())])

    identify = uproot.writing.identify
    if hist.ndim == 1:
        return identify.to_TH1x(
            hist.name, hist.title, data, float(hist.entries), tsumw, tsumw2,
            moments[0], moments[1], sumw2, axes[0],
        )
    if hist.ndim == 2:
        tsumwxy = float((values * grids[0] * grids[1]).sum())
        return identify.to_TH2x(
            hist.name, hist.title, data, float(hist.entries), tsumw, tsumw2,
            moments[0], moments[1], moments[2], moments[3], tsumwxy, sumw2, axes[0], axes[1],
        )
    tsumwxy = float((values * grids[0] * grids[1]).sum())
    tsumwxz = float((values * grids[0] * grids[2]).sum())
    tsumwyz = float((values * grids[1] * grids[2]).sum())
    return identify.to_TH3x(
        hist.name, hist.title, data, float(hist.entries), tsumw, tsumw2,
        moments[0], moments[1], moments[2], moments[3], tsumwxy, moments[4], moments[5],
        tsumwxz, tsumwyz, sumw2, axes[0], axes[1], axes[2],
    )


def write_root_file(root: HistogramDirectory, path: PathLike):
    """Write ``root`` to a new ROOT file at ``path``, replacing any existing file."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with uproot.recreate(output_path) as f:
        _write_directory(f, root)

    print(f"[info] Wrote {sum(1 for _ in root.walk())} objects to {output_path}")


def _write_directory(target, directory: HistogramDirectory):
    for key in directory.keys():
        entry = directory[key]
        if isinstance(entry, HistogramDirectory):
            _write_directory(target.mkdir(key), entry)
        elif isinstance(entry, Histogram):
            target[key] = _to_writable(entry)
        else:
            target[key] = str(entry)


def _from_uproot(key: str, obj) -> Histogram:
    values = obj.values(flow=True)
    variances = obj.variances(flow=True)
    edges = [axis.edges() for axis in obj.axes]
    labels = [axis.member("fTitle") for axis in obj.axes]
    hist = Histogram.from_numpy(key, values, edges, sumw2=variances,
                                title=obj.member("fTitle"), axis_labels=labels)
    hist.entries = int(obj.member("fEntries"))
    return hist


def _read_directory(source, directory: HistogramDirectory):
    for key, classname in source.classnames(recursive=False, cycle=False).items():
        if classname.startswith("TDirectory"):
            _read_directory(source[key], directory.mkdir(key))
        elif classname.startswith(("TH1", "TH2", "TH3")):
            directory.write(_from_uproot(key, source[key]), key)
        elif classname == "TObjString":
            directory.write_string(key, str(source[key]))
        else:
            print(f"[warning] Skipping '{key}' of unsupported class {classname}.")


def read_root_file(path: PathLike) -> HistogramDirectory:
    """Load every histogram, string and directory of a ROOT file into memory."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"ROOT file '{path}' does not exist.")
    root = HistogramDirectory(Path(path).name)
    with uproot.open(path) as f:
        _read_directory(f, root)
    return root


# =============================================================================
# Manifest and CSV export
# =============================================================================

def read_manifest(root: HistogramDirectory) -> Optional[dict]:
    """Decoded JSON manifest of a flux reader output, or None when absent."""
    raw = root.strings().get(config.MANIFEST_KEY)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        print(f"[warning] Could not decode manifest: {e}")
        return None


def export_histogram_to_csv(hist: Histogram, filename: PathLike):
    """Export the regular bins of a histogram to a CSV file.

    One row per bin: the lower and upper edge on every axis, the content and
    its error.
    """
    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    axes = "xyz"[:hist.ndim]
    headers = []
    for axis in axes:
        headers += [f"{axis}_low", f"{axis}_high"]
    headers += ["content", "error"]

    with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        for slot in np.ndindex(*(hist.n_bins(i) for i in range(hist.ndim))):
            row = []
            for axis, i in enumerate(slot):
                row += [hist.edges[axis][i], hist.edges[axis][i + 1]]
            flow_slot = tuple(i + 1 for i in slot)
            row += [hist.get_bin_content(*flow_slot), hist.get_bin_error(*flow_slot)]
            writer.writerow(row)


def export_directory_to_csv(root: HistogramDirectory, output_dir: PathLike) -> int:
    """Export every histogram of ``root`` as ``<output_dir>/<path>.csv``."""
    count = 0
    for path, entry in root.walk():
        if isinstance(entry, Histogram):
            export_histogram_to_csv(entry, Path(output_dir) / f"{path}.csv")
            count += 1
    print(f"[info] Exported {count} histograms to {output_dir}")
    return count
