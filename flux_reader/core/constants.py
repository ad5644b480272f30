"""
Physical constants and fixed labels shared by the flux reader core.
"""

import math

# Converts the dk2nu importance * propagation weight into flux units
# (per cm^2 at the reference radius).
DEFAULT_WEIGHT_CORRECTION = 1.0 / (10000.0 * math.pi)

# Avogadro's number * 1e-38 cm^2 * 1e9 g/kton
EVENT_RATE_SCALE = 0.0000060221413  # cm^2/kton * g/mol

# Cross-section label meaning "no cross section applied"
NO_XSEC = "NoXSec"

# Markers that replace the flavor / parent segment of combined histogram names
ALL_NU = "allnu"
ALL_PAR = "allpar"

# Separator between histogram name segments
NAME_SEP = "_"

# Key under which the ray index map stores "one past the last ray"
NURAY_END_KEY = "znull"

# Parent masses (GeV), keyed by absolute PDG code
PION_MASS = 0.13957039
KAON_MASS = 0.493677
K0_MASS = 0.497611
MUON_MASS = 0.1056583745
OMEGA_MASS = 1.67245

PARENT_MASSES = {
    211: PION_MASS,
    321: KAON_MASS,
    130: K0_MASS,
    13: MUON_MASS,
    3334: OMEGA_MASS,
}
