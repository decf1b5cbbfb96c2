"""
Track Builder

Samples the Position Deriver at fixed increments after a satellite's last
observation and assembles the surviving positions into a polyline. Samples
are independent, so they may be computed on a thread pool; the polyline is
always assembled in sample order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from config import TRACK_STEP_SECONDS, TRACK_STEPS
from globe_service.element_sets import ElementSet
from globe_service.layers import TrackPoint
from globe_service.propagation import (
    ObservedPosition,
    Propagator,
    derive_position,
    from_epoch_millis,
)
from logging_config import get_logger

logger = get_logger(__name__)


def sample_times(base_millis: int, step_seconds: int = TRACK_STEP_SECONDS,
                 steps: int = TRACK_STEPS) -> List[int]:
    """Epoch millis of each track sample, starting at ``base_millis``."""
    return [base_millis + i * step_seconds * 1000 for i in range(steps)]


def build_track(element_set: ElementSet, base_millis: int, propagator: Propagator,
                step_seconds: int = TRACK_STEP_SECONDS, steps: int = TRACK_STEPS,
                max_workers: Optional[int] = None) -> List[TrackPoint]:
    """
    Build the ground track of one satellite.

    Args:
        element_set: Satellite to track
        base_millis: Start of the track (epoch millis)
        propagator: Propagation capability
        step_seconds: Interval between samples
        steps: Number of samples
        max_workers: Thread pool size; sequential when None

    Returns:
        Chronological track points; failed samples are omitted
    """
    def sample(millis: int) -> Optional[ObservedPosition]:
        return derive_position(element_set, from_epoch_millis(millis), propagator)

    times = sample_times(base_millis, step_seconds, steps)
    if max_workers:
        # Executor.map yields results in submission order
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            positions = list(executor.map(sample, times))
    else:
        positions = [sample(millis) for millis in times]

    track = [TrackPoint(*p.xyz) for p in positions if p is not None]
    if len(track) < steps:
        logger.debug(f"Track for {element_set.common_name}: {steps - len(track)} of {steps} samples skipped")
    return track


class TrackBuilder:
    """Draws the track of the selected satellite on the session's track layer."""

    def __init__(self, session, max_workers: Optional[int] = None):
        self.session = session
        self.max_workers = max_workers

    def show_track(self) -> List[TrackPoint]:
        """
        Replace the track display with the selected satellite's track.

        Raises:
            RuntimeError: If no satellite is selected
        """
        feature = self.session.selected_feature
        if feature is None:
            raise RuntimeError("No satellite selected")

        attributes = feature.attributes
        element_set = ElementSet(
            common_name=attributes.common_name,
            line1=attributes.line1,
            line2=attributes.line2,
        )
        track = build_track(
            element_set,
            attributes.obs_time,
            self.session.propagator,
            max_workers=self.max_workers,
        )
        self.session.track_layer.replace(track)
        logger.info(f"Showing {len(track)}-point track for {attributes.common_name}")
        return track
