"""
Globe Session

Holds the state of one globe session: the loaded element sets, the feature
and track layers, the threshold control and the current selection. The
Filter Controller and Track Builder operate on the session passed to them.

Session states:
    UNLOADED -> LOADING -> LOADED
                        -> FAILED   (element text could not be loaded or the load aborted)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from config import GlobeServiceConfig, TRACK_ACTION
from globe_service.designator import decode_designator
from globe_service.element_sets import ElementSet, parse_element_sets
from globe_service.errors import LoadFailure, ParseError
from globe_service.fetch import ElementTextCache, fetch_element_text
from globe_service.filter_controller import FilterController, ThresholdControl
from globe_service.layers import FeatureLayer, SatelliteAttributes, SatelliteFeature, TrackLayer
from globe_service.propagation import Propagator, Sgp4Propagator, derive_position, to_epoch_millis
from globe_service.track import TrackBuilder
from logging_config import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GlobeSession:
    """State and operations of one globe session."""

    def __init__(self, propagator: Optional[Propagator] = None,
                 clock: Callable[[], datetime] = utc_now,
                 track_workers: Optional[int] = None,
                 control_steps: int = GlobeServiceConfig.CONTROL_STEPS):
        self.propagator = propagator if propagator is not None else Sgp4Propagator()
        self.clock = clock
        self.state = SessionState.UNLOADED
        self.element_sets: List[ElementSet] = []
        self.feature_layer = FeatureLayer()
        self.track_layer = TrackLayer()
        self.control = ThresholdControl(steps=control_steps)
        self.selected_object_id: Optional[int] = None
        self.filter_controller = FilterController(self)
        self.track_builder = TrackBuilder(self, max_workers=track_workers)

    def load(self, source: str, timeout: Optional[float] = None,
             cache: Optional[ElementTextCache] = None) -> int:
        """
        Fetch the element text of ``source`` and populate the feature layer.

        Any failure leaves the session FAILED with no features and the
        control disabled.

        Returns:
            Number of features added
        """
        self._begin_load()
        try:
            text = fetch_element_text(source, timeout=timeout, cache=cache)
            return self._populate(text)
        except Exception as e:
            return self._fail(e)

    def load_text(self, text: str) -> int:
        """Populate the feature layer from already fetched element text."""
        self._begin_load()
        try:
            if not text.strip():
                raise LoadFailure("element text is empty")
            return self._populate(text)
        except Exception as e:
            return self._fail(e)

    def _begin_load(self) -> None:
        if self.state != SessionState.UNLOADED:
            raise RuntimeError(f"Session already {self.state.value}")
        self.state = SessionState.LOADING

    def _fail(self, error: Exception) -> int:
        """End a load in FAILED with no features and a disabled 0..0 control."""
        if isinstance(error, LoadFailure):
            logger.error(f"Satellite load failed: {error}")
        else:
            logger.exception(f"Satellite load aborted: {error}")
        self.element_sets = []
        self.feature_layer = FeatureLayer()
        self.track_layer.clear()
        self.control = ThresholdControl(steps=self.control.steps)
        self.state = SessionState.FAILED
        return 0

    def _populate(self, text: str) -> int:
        self.element_sets = parse_element_sets(text)
        now = self.clock()
        obs_time = to_epoch_millis(now)

        additions = []
        for element_set in self.element_sets:
            position = derive_position(element_set, now, self.propagator)
            if position is None:
                continue
            try:
                designator = decode_designator(element_set.line1)
            except ParseError as e:
                logger.warning(f"Skipping {element_set.common_name}: {e}")
                continue

            attributes = SatelliteAttributes(
                common_name=element_set.common_name,
                launch_year=designator.launch_year,
                launch_number=designator.launch_number,
                line1=element_set.line1,
                line2=element_set.line2,
                obs_time=obs_time,
            )
            additions.append((position.xyz, attributes))

        self.feature_layer.add_features(additions)
        count = len(self.feature_layer)
        self.control.maximum = count
        self.control.value = count
        self.control.disabled = False

        # Layer ready
        self.filter_controller.apply()
        self.state = SessionState.LOADED
        logger.info(f"Loaded {count} of {len(self.element_sets)} satellites")
        return count

    @property
    def selected_feature(self) -> Optional[SatelliteFeature]:
        if self.selected_object_id is None:
            return None
        return self.feature_layer.get(self.selected_object_id)

    def select(self, object_id: int) -> SatelliteFeature:
        """
        Select a satellite; any displayed track is cleared.

        Raises:
            KeyError: If no feature has ``object_id``
        """
        feature = self.feature_layer.get(object_id)
        self.track_layer.clear()
        self.selected_object_id = object_id
        return feature

    def deselect(self) -> None:
        self.track_layer.clear()
        self.selected_object_id = None

    def trigger_action(self, action_id: str) -> bool:
        """
        Run a popup action on the selected satellite.

        Returns:
            True if the action was handled
        """
        if action_id != TRACK_ACTION['id']:
            logger.debug(f"Ignoring action {action_id}")
            return False
        self.track_builder.show_track()
        return True
