"""
Preset detectors in NuMI/BNB beamline coordinates (cm).

Each call returns a new ``Detector`` so that callers may change ``uses``
without affecting other users of the preset.
"""

from __future__ import annotations

from typing import Callable, Dict

from .data_classes import Detector


def microboone() -> Detector:
    return Detector("MicroBooNE", "CH2", (5300.0, 7600.0, 67900.0), (0.0, 0.0, 0.0), 1)


def minerva() -> Detector:
    return Detector("Minerva", "CH2", (-56.28, -53.29317, 103231.9), (0.0, 0.0, 0.0), 1)


def miniboone() -> Detector:
    return Detector("MiniBooNE", "CH2", (2604.0, 7864.0, 74487.0), (0.0, 0.0, 0.0), 1)


def minos_nd() -> Detector:
    return Detector("MINOS-ND", "CH2", (0.0, 0.0, 103648.8), (100.0, 100.0, 500.0), 1)


def minos_fd() -> Detector:
    return Detector("MINOS-FD", "CH2", (0.0, 0.0, 73534000.0), (374.0, 374.0, 2800.0), 1)


def nova_nd() -> Detector:
    return Detector(
        "NOvA-ND", "CH2", (1150.172, -280.0719, 100099.2), (262.14, 393.27, 1424.52698), 1
    )


def nova_fd() -> Detector:
    return Detector(
        "NOvA-FD", "CH2", (1103746.0, -416264.0, 81042232.0), (1560.0, 1560.0, 7800.0), 1
    )


def nova_ipnd() -> Detector:
    return Detector(
        "NOvA-IPND", "CH2", (-29.0, 9221.0, 84176.0), (262.14, 393.27, 1424.52698), 1
    )


def sciboone() -> Detector:
    return Detector("SciBooNE", "CH2", (19760.0, 5340.0, 33940.0), (0.0, 0.0, 0.0), 1)


PRESET_DETECTORS: Dict[str, Callable[[], Detector]] = {
    "MicroBooNE": microboone,
    "Minerva": minerva,
    "MiniBooNE": miniboone,
    "MINOS-ND": minos_nd,
    "MINOS-FD": minos_fd,
    "NOvA-ND": nova_nd,
    "NOvA-FD": nova_fd,
    "NOvA-IPND": nova_ipnd,
    "SciBooNE": sciboone,
}


def get_preset_detector(name: str) -> Detector:
    """Return a fresh copy of the preset detector called ``name``.

    Raises
    ------
    KeyError
        If no preset has that name.
    """
    try:
        factory = PRESET_DETECTORS[name]
    except KeyError:
        valid = ", ".join(PRESET_DETECTORS)
        raise KeyError(f"Unknown detector preset '{name}'. Valid presets: {valid}") from None
    return factory()
