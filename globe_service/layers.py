"""
In-memory rendering layers.

FeatureLayer holds the satellite point features with load-order object ids
and an optional object-id filter. TrackLayer holds the ground track display;
it is only ever changed through replace(), so at most one track is visible.
Both export GeoJSON for the globe client.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel

OBJECT_ID_FIELD = "ObjectID"


class TrackPoint(NamedTuple):
    """Polyline vertex: longitude (deg), latitude (deg), height (m)."""
    x: float
    y: float
    z: float


class SatelliteAttributes(BaseModel):
    common_name: str
    launch_year: int
    launch_number: int
    line1: str
    line2: str
    obs_time: int  # epoch millis


class SatelliteFeature(BaseModel):
    object_id: int
    geometry: TrackPoint
    attributes: SatelliteAttributes

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "id": self.object_id,
            "geometry": {"type": "Point", "coordinates": list(self.geometry)},
            "properties": {OBJECT_ID_FIELD: self.object_id, **self.attributes.model_dump()},
        }


class ObjectIdFilter(BaseModel):
    """Inclusion predicate ``ObjectID < limit``."""
    limit: int

    @property
    def where(self) -> str:
        return f"{OBJECT_ID_FIELD} < {self.limit}"

    def matches(self, feature: SatelliteFeature) -> bool:
        return feature.object_id < self.limit


class FeatureLayer:
    """Point features of the loaded satellites."""

    def __init__(self):
        self.features: List[SatelliteFeature] = []
        self.filter: Optional[ObjectIdFilter] = None

    def add_features(self, additions: Sequence[tuple]) -> List[int]:
        """
        Add (geometry, attributes) pairs, assigning object ids in order.

        Returns:
            The assigned object ids
        """
        object_ids = []
        for geometry, attributes in additions:
            feature = SatelliteFeature(
                object_id=len(self.features),
                geometry=TrackPoint(*geometry),
                attributes=attributes,
            )
            self.features.append(feature)
            object_ids.append(feature.object_id)
        return object_ids

    def set_filter(self, layer_filter: Optional[ObjectIdFilter]) -> None:
        self.filter = layer_filter

    def get(self, object_id: int) -> SatelliteFeature:
        if not 0 <= object_id < len(self.features):
            raise KeyError(f"No feature with {OBJECT_ID_FIELD} {object_id}")
        return self.features[object_id]

    def visible_features(self) -> List[SatelliteFeature]:
        if self.filter is None:
            return list(self.features)
        return [f for f in self.features if self.filter.matches(f)]

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.visible_features()],
        }

    def __len__(self):
        return len(self.features)


class TrackLayer:
    """Transient track display holding zero or one polyline."""

    def __init__(self):
        self.tracks: List[List[TrackPoint]] = []

    def replace(self, polyline: Optional[Sequence[TrackPoint]]) -> None:
        """Clear the display, then show ``polyline`` if given."""
        self.tracks = []
        if polyline is not None:
            self.tracks.append(list(polyline))

    def clear(self) -> None:
        self.replace(None)

    @property
    def current(self) -> Optional[List[TrackPoint]]:
        return self.tracks[0] if self.tracks else None

    def to_geojson(self) -> Optional[Dict[str, Any]]:
        if self.current is None:
            return None
        return {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [list(point) for point in self.current],
            },
            "properties": {"points": len(self.current)},
        }
