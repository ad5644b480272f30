"""
Configuration settings for the flux reader.

This module collects the constants that control input tree layout, output
naming, cross-section lookup and plotting. Change these values to adapt the
reader to a different flux ntuple format without touching the core code.
"""

from __future__ import annotations

import os
from pathlib import Path

# =============================================================================
# Input Trees
# =============================================================================

# Tree holding one entry per simulated decay
DEFAULT_TREE_NAME = "dk2nuTree"

# Metadata tree and the branch summing protons on target
DEFAULT_META_TREE_NAME = "dkmetaTree"
DEFAULT_POT_BRANCH = "pots"

# Branch names of the split dk2nu record
DEFAULT_BRANCH_NAMES = {
    "ntype": "decay.ntype",
    "ptype": "decay.ptype",
    "nimpwt": "decay.nimpwt",
    "vx": "decay.vx",
    "vy": "decay.vy",
    "vz": "decay.vz",
    "pdpx": "decay.pdpx",
    "pdpy": "decay.pdpy",
    "pdpz": "decay.pdpz",
    "ppdxdz": "decay.ppdxdz",
    "ppdydz": "decay.ppdydz",
    "pppz": "decay.pppz",
    "ppenergy": "decay.ppenergy",
    "muparpx": "decay.muparpx",
    "muparpy": "decay.muparpy",
    "muparpz": "decay.muparpz",
    "mupare": "decay.mupare",
    "necm": "decay.necm",
    "nuray.E": "nuray.E",
    "nuray.wgt": "nuray.wgt",
    "tptype": "tgtexit.tptype",
    "tpx": "tgtexit.tpx",
    "tpy": "tgtexit.tpy",
    "tpz": "tgtexit.tpz",
    "ancestor.pdg": "ancestor.pdg",
    "ancestor.stoppx": "ancestor.stoppx",
    "ancestor.stoppy": "ancestor.stoppy",
    "ancestor.stoppz": "ancestor.stoppz",
}

# Branches every spectrum needs regardless of its variables
DEFAULT_BRANCHES = frozenset({
    "ntype", "ptype", "nimpwt", "nuray.E", "nuray.wgt", "tptype",
})

# Branches consumed by the ray reweighter
REWEIGHT_BRANCHES = frozenset({
    "vx", "vy", "vz", "pdpx", "pdpy", "pdpz", "ppdxdz", "ppdydz", "pppz",
    "ppenergy", "ntype", "ptype", "muparpx", "muparpy", "muparpz", "mupare", "necm",
})

# Entries read per uproot chunk
ITERATE_STEP_SIZE = "100 MB"

# Print a progress line every this many entries when tqdm is disabled
PROGRESS_INTERVAL = 250000

# =============================================================================
# Output Naming
# =============================================================================

TOTAL_POT_NAME = "TotalPOT"
MANIFEST_KEY = "FluxReaderManifest"
MANIFEST_VERSION = 1

# =============================================================================
# Cross Sections
# =============================================================================

# Default cross-section labels for new parameter sets
DEFAULT_XSECS = ("NoXSec", "tot_cc", "tot_nc")

# GENIE spline graphs: the first $GENIEXSECPATH/xsec_graphs_*_*.root file is used
GENIE_XSEC_ENV = "GENIEXSECPATH"
GENIE_XSEC_PATTERN = "xsec_graphs_*_*.root"

# Without a GENIE file, tabulated curves live under
# <CROSS_SECTION_DIR>/<nu name><isotope>/<label>.csv
CROSS_SECTION_DIR = Path(os.environ.get(
    "FLUX_READER_XSEC_DIR",
    Path(__file__).resolve().parent / "data" / "cross_sections",
))
CROSS_SECTION_DELIMITER = ","

# Energy range of the constant curve used for NoXSec (GeV)
NO_XSEC_ENERGY_RANGE = (0.0, 120.0)

# GENIE-style neutrino directory prefixes
NU_DIR_NAMES = {
    12: "nu_e_",
    -12: "nu_e_bar_",
    14: "nu_mu_",
    -14: "nu_mu_bar_",
    16: "nu_tau_",
    -16: "nu_tau_bar_",
}

# Element symbol -> isotope suffix of the cross-section directory
TARGET_ISOTOPES = {
    "H": "H1",
    "C": "C12",
    "N": "N14",
    "O": "O16",
    "S": "S32",
    "Cl": "Cl35",
    "Ar": "Ar40",
    "Ti": "Ti48",
    "Fe": "Fe56",
}

# Molar masses (g/mol)
MOLAR_MASS = {
    "H": 1.008,
    "C": 12.011,
    "N": 14.007,
    "O": 15.999,
    "S": 32.065,
    "Cl": 35.453,
    "Ar": 39.948,
    "Ti": 47.867,
    "Fe": 55.845,
}

# Valid interaction types, as labelled in the GENIE cross-section splines
KNOWN_INTERACTION_TYPES = frozenset({
    "qel_nc_p",
    "res_cc_p_1232P33", "res_cc_p_1620S31", "res_cc_p_1700D33", "res_cc_p_1910P31",
    "res_cc_p_1920P33", "res_cc_p_1905F35", "res_cc_p_1950F37",
    "res_nc_p_1232P33", "res_nc_p_1535S11", "res_nc_p_1520D13", "res_nc_p_1650S11",
    "res_nc_p_1700D13", "res_nc_p_1675D15", "res_nc_p_1620S31", "res_nc_p_1700D33",
    "res_nc_p_1440P11", "res_nc_p_1720P13", "res_nc_p_1680F15", "res_nc_p_1910P31",
    "res_nc_p_1920P33", "res_nc_p_1905F35", "res_nc_p_1950F37", "res_nc_p_1710P11",
    "dis_cc_p_ubarsea", "dis_cc_p_dval", "dis_cc_p_dsea", "dis_cc_p_ssea",
    "dis_nc_p_sbarsea", "dis_nc_p_ubarsea", "dis_nc_p_dbarsea", "dis_nc_p_dval",
    "dis_nc_p_dsea", "dis_nc_p_uval", "dis_nc_p_usea", "dis_nc_p_ssea",
    "dis_cc_p_dval_charm", "dis_cc_p_dsea_charm", "dis_cc_p_ssea_charm",
    "qel_cc_p_charm4222", "imd_cc", "ve_nc", "ve_ccncmix",
    "res_cc_p", "res_cc_n", "res_nc_p", "res_nc_n",
    "dis_cc_p", "dis_cc_n", "dis_nc_p", "dis_nc_n",
    "dis_cc_p_charm", "dis_cc_n_charm", "dis_nc_p_charm", "dis_nc_n_charm",
    "mec_cc", "mec_nc",
    "tot_cc", "tot_cc_p", "tot_cc_n", "tot_nc", "tot_nc_p", "tot_nc_n",
})

# =============================================================================
# Ray Reweighting
# =============================================================================

# Rotation between detector and beam coordinates (degrees)
BEAM_ROTATION_DEG = 3.323155

# Radius of the reference detector used for the solid-angle weight (cm)
REFERENCE_DETECTOR_RADIUS_CM = 100.0

# =============================================================================
# Visualization Settings
# =============================================================================

PLOT_DPI = 300
QUICK_PLOT_DPI = 150
SPECTRUM_FIGSIZE = (8, 6)
FIGURES_OUTPUT_DIR = "Figures"
