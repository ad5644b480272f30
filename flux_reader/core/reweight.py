"""
Neutrino ray reweighting toward detector locations.

For every flux entry the neutrino is re-pointed at each detector: a location
is sampled inside the detector box, rotated into beam coordinates, and the
two-body decay kinematics give the neutrino energy and the probability weight
for that direction.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .. import config
from .constants import MUON_MASS, PARENT_MASSES
from .data_classes import Detector, FluxEvent


def smear(det: Detector, rng: Optional[np.random.Generator] = None, rr: float = 0.0) -> np.ndarray:
    """
    Sample a point uniformly inside the detector box, relative to its centre.

    Parameters
    ----------
    det : Detector
        Detector whose half sizes bound the sample.
    rng : np.random.Generator, optional
        Random generator; a fresh default generator is used when omitted.
    rr : float
        When positive, (x, y) is resampled until ``x**2 + y**2 <= rr``.

    Returns
    -------
    np.ndarray, shape (3,)
        Sampled offset in detector coordinates (cm).
    """
    if rng is None:
        rng = np.random.default_rng()

    half = np.asarray(det.half_size, dtype=float)
    x, y, z = rng.uniform(-half, half)

    while rr > 0.0 and rr < x * x + y * y:
        x = rng.uniform(-half[0], half[0])
        y = rng.uniform(-half[1], half[1])

    return np.array([x, y, z], dtype=float)


def to_beam_coords(det: Detector, xyz: Sequence[float]) -> np.ndarray:
    """Shift ``xyz`` to the detector position and rotate about x into beam coordinates."""
    angle = math.radians(config.BEAM_ROTATION_DEG)
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    x, y, z = xyz
    det_x, det_y, det_z = det.position
    return np.array([
        x + det_x,
        det_y + y * cos_a + z * sin_a,
        det_z + z * cos_a - y * sin_a,
    ], dtype=float)


def parent_mass(ptype: int) -> float:
    try:
        return PARENT_MASSES[abs(ptype)]
    except KeyError:
        raise ValueError(f"Unknown neutrino parent PDG {ptype}; cannot reweight ray.") from None


def _muon_polarization_ratio(event: FluxEvent, beta: np.ndarray, gamma: float,
                             p_nu: np.ndarray, enu: float) -> float:
    # Neutrino momentum in the muon rest frame
    partial = gamma * float(beta @ p_nu)
    partial = enu - partial / (gamma + 1.0)
    p_dcm_nu = p_nu - beta * gamma * partial
    p_dcm_nu_mag = float(np.linalg.norm(p_dcm_nu))

    # Muon parent momentum in the muon production frame
    particle_energy = event.ppenergy
    if particle_energy <= 0.0:
        return 1.0
    gamma_mu = particle_energy / MUON_MASS
    beta_mu = np.array([
        event.ppdxdz * event.pppz / particle_energy,
        event.ppdydz * event.pppz / particle_energy,
        event.pppz / particle_energy,
    ])
    mupar_p = np.array([event.muparpx, event.muparpy, event.muparpz])
    partial = gamma_mu * float(beta_mu @ mupar_p)
    partial = event.mupare - partial / (gamma_mu + 1.0)
    p_pcm_mp = mupar_p - beta_mu * gamma_mu * partial
    p_pcm = float(np.linalg.norm(p_pcm_mp))

    if p_pcm == 0.0 or p_dcm_nu_mag == 0.0:
        return 1.0

    costh = float(np.clip((p_dcm_nu @ p_pcm_mp) / (p_dcm_nu_mag * p_pcm), -1.0, 1.0))
    if abs(event.ntype) == 12:
        return 1.0 - costh
    if abs(event.ntype) == 14:
        xnu = 2.0 * event.necm / MUON_MASS
        return ((3.0 - 2.0 * xnu) - (1.0 - 2.0 * xnu) * costh) / (3.0 - 2.0 * xnu)
    return 1.0


def calc_enu_wgt(event: FluxEvent, xyz: Sequence[float]) -> Tuple[float, float]:
    """
    Neutrino energy and weight for a ray from the decay vertex to ``xyz``.

    Parameters
    ----------
    event : FluxEvent
        Entry providing the decay vertex, parent momentum and rest-frame energy.
    xyz : sequence of float
        Target point in beam coordinates (cm).

    Returns
    -------
    energy : float
        Neutrino energy in the lab frame (GeV).
    weight : float
        Probability per unit area at ``xyz``, relative to a detector of
        radius ``config.REFERENCE_DETECTOR_RADIUS_CM``.
    """
    mass = parent_mass(event.ptype)
    p_par = event.parent_momentum
    parent_p = float(np.linalg.norm(p_par))
    parent_energy = math.sqrt(parent_p * parent_p + mass * mass)
    gamma = parent_energy / mass
    beta_mag = math.sqrt((gamma * gamma - 1.0) / (gamma * gamma))

    to_det = np.asarray(xyz, dtype=float) - event.decay_vertex
    rad = float(np.linalg.norm(to_det))
    if rad == 0.0:
        return event.necm, 0.0

    if parent_p > 0.0:
        costh_pardet = float(np.clip((p_par @ to_det) / (parent_p * rad), -1.0, 1.0))
    else:
        costh_pardet = 1.0

    emrat = 1.0 / (gamma * (1.0 - beta_mag * costh_pardet))
    enu = emrat * event.necm

    rdet = config.REFERENCE_DETECTOR_RADIUS_CM
    sangdet = (rdet * rdet / (rad * rad)) / 4.0
    wgt = sangdet * emrat * emrat

    if abs(event.ptype) == 13:
        beta = p_par / parent_energy
        p_nu = to_det * enu / rad
        wgt *= _muon_polarization_ratio(event, beta, gamma, p_nu, enu)

    return enu, wgt


def reweight_event(
    event: FluxEvent,
    detectors: Sequence[Detector],
    nuray_indices: dict,
    rng: Optional[np.random.Generator] = None,
):
    """Overwrite the event's rays with the energy and weight toward each detector.

    A detector with one use is aimed at its centre; with more uses each ray is
    aimed at an independent point smeared through the detector box.
    """
    for det in detectors:
        first = nuray_indices[det.name]
        event.ensure_nurays(first + det.n_rays)
        for i_use in range(det.n_rays):
            if det.uses > 1:
                xyz = to_beam_coords(det, smear(det, rng))
            else:
                xyz = to_beam_coords(det, (0.0, 0.0, 0.0))
            energy, weight = calc_enu_wgt(event, xyz)
            ray = event.nurays[first + i_use]
            ray.energy = energy
            ray.weight = weight
