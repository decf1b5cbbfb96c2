"""
Filter Controller

Maps the threshold control value V onto the feature layer filter
``ObjectID < V``. Object ids follow load order, so V shows the first V
satellites.
"""

from typing import Optional

from pydantic import BaseModel

from config import GlobeServiceConfig
from globe_service.layers import ObjectIdFilter
from logging_config import get_logger

logger = get_logger(__name__)

# Control events that re-apply the filter
CONTROL_EVENTS = ("thumb-drag", "thumb-change", "segment-drag")


class ThresholdControl(BaseModel):
    """State of the scalar threshold control."""
    minimum: int = 0
    maximum: int = 0
    value: int = 0
    steps: int = GlobeServiceConfig.CONTROL_STEPS
    disabled: bool = True


class FilterController:
    """Applies the control value of a session to its feature layer."""

    def __init__(self, session):
        self.session = session

    def apply(self, value: Optional[int] = None) -> ObjectIdFilter:
        """
        Filter the feature layer to object ids below ``value``.

        Defaults to the current control value. Applying the same value twice
        leaves the visible set unchanged.

        Raises:
            ValueError: If value is outside the control range
        """
        control = self.session.control
        if value is None:
            value = control.value
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Threshold must be an integer, got {value!r}")
        if not control.minimum <= value <= control.maximum:
            raise ValueError(
                f"Threshold {value} outside control range {control.minimum}..{control.maximum}"
            )

        control.value = value
        layer_filter = ObjectIdFilter(limit=value)
        self.session.feature_layer.set_filter(layer_filter)
        logger.info(f"Displaying {value} satellites")
        return layer_filter

    def handle_event(self, event_type: str, value: int) -> Optional[ObjectIdFilter]:
        """Apply ``value`` for control events; other events are ignored."""
        if event_type not in CONTROL_EVENTS:
            logger.debug(f"Ignoring control event {event_type}")
            return None
        return self.apply(value)
