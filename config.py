"""
Satellite Globe Configuration and Constants

This module contains the constants and environment-backed settings used
throughout the project.

Constants:
    WGS-84 ellipsoid parameters used for the ECI to geodetic conversion,
    the track sampling window, the launch year pivot of the element-set
    epoch convention, and the view/symbol settings handed to the globe client.

Environment:
    ELEMENT_SOURCE      URL or file path of the 3-line element text
    FETCH_TIMEOUT       Seconds to wait for the element text (unset: no timeout)
    REDIS_URL           Redis URL for caching the element text (unset: disabled)
    CACHE_TTL           Cache lifetime of the element text in seconds
    TRACK_WORKERS       Thread pool size for track sampling (unset: sequential)
    CONTROL_STEPS       Number of steps of the threshold control

References:
    CelesTrak, "FAQs: Two-Line Element Set Format".
    https://celestrak.org/columns/v04n03/
"""

import os
from typing import Dict, Any, Optional

# WGS-84 ellipsoid
EARTH_RADIUS_KM: float = 6378.137  # Equatorial radius (km)
EARTH_FLATTENING: float = 1.0 / 298.257223563

# Two-digit launch years at or above the pivot belong to the 1900s
LAUNCH_YEAR_PIVOT: int = 57

# 24 hours of one-minute samples
TRACK_STEP_SECONDS: int = 60
TRACK_STEPS: int = 60 * 24

# Local copy of CelesTrak TLE data
DEFAULT_ELEMENT_SOURCE: str = "./all.txt"

# Settings consumed by the globe client
VIEW_SETTINGS: Dict[str, Any] = {
    'basemap': 'satellite',
    'camera': {'position': [-94, 45, 150000000]},  # x, y, z (meters)
    'constraints': {'altitude': {'min': 5000000, 'max': 500000000}},
    'environment': {
        'lighting': {'type': 'virtual'},
        'starsEnabled': False,
        'atmosphereEnabled': False,
    },
}

SATELLITE_SYMBOL: Dict[str, Any] = {
    'type': 'simple-marker',
    'color': [0, 255, 0, 0.5],
    'outline': None,
    'size': 1.5,
}

TRACK_SYMBOL: Dict[str, Any] = {
    'type': 'line-3d',
    'symbolLayers': [
        {'type': 'line', 'material': {'color': [255, 255, 255, 0.5]}, 'size': 1.5}
    ],
}

TRACK_ACTION: Dict[str, str] = {
    'id': 'track',
    'title': 'Show 24-Hour Satellite Track',
}


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value else None


class GlobeServiceConfig:
    ELEMENT_SOURCE = os.getenv('ELEMENT_SOURCE', DEFAULT_ELEMENT_SOURCE)
    FETCH_TIMEOUT = _optional_float(os.getenv('FETCH_TIMEOUT'))
    REDIS_URL = os.getenv('REDIS_URL')
    CACHE_TTL = int(os.getenv('CACHE_TTL', '3600'))  # 1 hour
    TRACK_WORKERS = _optional_int(os.getenv('TRACK_WORKERS'))
    CONTROL_STEPS = int(os.getenv('CONTROL_STEPS', '500'))
