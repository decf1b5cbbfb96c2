"""
Position Deriver

Binds the sgp4 library as the propagation capability and turns its output
into geodetic positions suitable for the globe: longitude wrapped into
[-pi, pi], angles in degrees and height in meters.

A propagator raises on any failure. derive_position absorbs those failures
(and NaN results) as "no position available" so callers can skip the sample.
"""

import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel
from sgp4.api import Satrec, jday
from sgp4.propagation import gstime

from config import EARTH_RADIUS_KM, EARTH_FLATTENING
from globe_service.element_sets import ElementSet
from globe_service.errors import PropagationFailure
from logging_config import get_logger

logger = get_logger(__name__)

TWO_PI = 2.0 * math.pi

# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class GeodeticPosition(NamedTuple):
    """Raw propagator output."""
    longitude_rad: float
    latitude_rad: float
    height_km: float


class ObservedPosition(BaseModel):
    """Position of one satellite at one instant, ready for display."""
    longitude_deg: float
    latitude_deg: float
    height_m: float
    observed_at_epoch_millis: int

    @property
    def xyz(self) -> Tuple[float, float, float]:
        return (self.longitude_deg, self.latitude_deg, self.height_m)


class Propagator(ABC):
    """Propagation capability: TLE lines and a UTC instant to a geodetic position."""

    @abstractmethod
    def propagate(self, line1: str, line2: str, when: datetime) -> GeodeticPosition:
        """Raise on any failure; never return a partial position."""


def eci_to_geodetic(position_km: Sequence[float], gmst: float) -> GeodeticPosition:
    """
    Convert an ECI position to geodetic coordinates on the WGS-84 ellipsoid.

    The longitude is atan2(y, x) - gmst and is not wrapped.

    Args:
        position_km: ECI position [x, y, z] (km)
        gmst: Greenwich mean sidereal time (rad)
    """
    r_eci = np.asarray(position_km, dtype=float)
    a = EARTH_RADIUS_KM
    e2 = 2.0 * EARTH_FLATTENING - EARTH_FLATTENING * EARTH_FLATTENING

    # Distance from z-axis
    r = np.linalg.norm(r_eci[:2])
    longitude = np.arctan2(r_eci[1], r_eci[0]) - gmst
    latitude = np.arctan2(r_eci[2], r)

    c = 1.0
    for _ in range(20):
        sin_lat = np.sin(latitude)
        c = 1.0 / np.sqrt(1.0 - e2 * sin_lat * sin_lat)
        latitude = np.arctan2(r_eci[2] + a * c * e2 * sin_lat, r)

    height = r / np.cos(latitude) - a * c
    return GeodeticPosition(float(longitude), float(latitude), float(height))


class Sgp4Propagator(Propagator):
    """
    Propagator backed by the sgp4 library.

    Parsed Satrec objects are kept per TLE so repeated samples of one
    satellite (track building) parse the lines only once.
    """

    def __init__(self):
        self.satellites: Dict[Tuple[str, str], Satrec] = {}

    def _satrec(self, line1: str, line2: str) -> Satrec:
        key = (line1, line2)
        satellite = self.satellites.get(key)
        if satellite is None:
            satellite = Satrec.twoline2rv(line1, line2)
            self.satellites[key] = satellite
        return satellite

    def propagate(self, line1: str, line2: str, when: datetime) -> GeodeticPosition:
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc)

        jd, fr = jday(when.year, when.month, when.day, when.hour, when.minute, when.second)
        error, position, _ = self._satrec(line1, line2).sgp4(jd, fr)
        if error != 0:
            raise PropagationFailure(
                f"SGP4 error {error}: {SGP4_ERROR_CODES.get(error, 'Unknown error')}"
            )

        return eci_to_geodetic(position, gstime(jd + fr))


def normalize_longitude(longitude_rad: float) -> float:
    """Wrap a longitude into [-pi, pi] by whole turns."""
    while longitude_rad < -math.pi:
        longitude_rad += TWO_PI
    while longitude_rad > math.pi:
        longitude_rad -= TWO_PI
    return longitude_rad


def to_epoch_millis(when: datetime) -> int:
    return int(round(when.timestamp() * 1000))


def from_epoch_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)


def derive_position(element_set: ElementSet, when: datetime,
                    propagator: Propagator) -> Optional[ObservedPosition]:
    """
    Derive the displayed position of a satellite at an instant.

    Returns:
        ObservedPosition, or None when the propagator fails or yields NaN or inf
    """
    try:
        geodetic = propagator.propagate(element_set.line1, element_set.line2, when)
    except Exception as e:
        logger.debug(f"No position for {element_set.common_name} at {when.isoformat()}: {e}")
        return None

    if not all(math.isfinite(value) for value in geodetic):
        logger.debug(f"Non-finite position for {element_set.common_name} at {when.isoformat()}")
        return None

    return ObservedPosition(
        longitude_deg=math.degrees(normalize_longitude(geodetic.longitude_rad)),
        latitude_deg=math.degrees(geodetic.latitude_rad),
        height_m=geodetic.height_km * 1000.0,
        observed_at_epoch_millis=to_epoch_millis(when),
    )
