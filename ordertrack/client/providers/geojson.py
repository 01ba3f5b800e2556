"""
Vector map adapter.

Keeps the map as a GeoJSON feature collection (markers as Points, the path
as a LineString) plus a viewport, for vector renderers that consume
GeoJSON directly. GeoJSON positions are (lng, lat).
"""

import itertools
from typing import Any, Dict, Optional, Sequence

from ordertrack.client.map_provider import LatLng, MapProvider, MarkerSpec, PathStyle, bounding_box


class GeoJsonMapProvider(MapProvider):
    def __init__(self, geojson_module: Any, center: LatLng, zoom: int):
        self._geojson = geojson_module
        self._features: Dict[str, Any] = {}
        self._ids = itertools.count(1)
        self.center = center
        self.zoom = zoom
        self.bounds = None
        self.padding: Optional[int] = None
        self.destroyed = False

    def _add(self, kind: str, geometry, properties: dict) -> str:
        feature_id = f"{kind}-{next(self._ids)}"
        self._features[feature_id] = self._geojson.Feature(
            id=feature_id, geometry=geometry, properties=properties
        )
        return feature_id

    def place_marker(self, spec: MarkerSpec) -> str:
        lat, lng = spec.position
        return self._add(
            "marker",
            self._geojson.Point((lng, lat)),
            {
                "role": spec.role.value,
                "title": spec.title,
                "marker-color": spec.color,
                "heading": spec.heading,
                "popup": spec.popup,
            },
        )

    def remove_marker(self, handle: str) -> None:
        self._features.pop(handle, None)

    def draw_path(self, points: Sequence[LatLng], style: PathStyle) -> str:
        return self._add(
            "path",
            self._geojson.LineString([(lng, lat) for lat, lng in points]),
            {
                "style": style.name,
                "stroke": style.color,
                "stroke-width": style.weight,
                "stroke-opacity": style.opacity,
                "stroke-dasharray": style.dash_array,
            },
        )

    def remove_path(self, handle: str) -> None:
        self._features.pop(handle, None)

    def fit_bounds(self, points: Sequence[LatLng], padding: int) -> None:
        box = bounding_box(points)
        if box is None:
            return
        self.bounds = box
        self.padding = padding

    def set_view(self, center: LatLng, zoom: int) -> None:
        self.center = center
        self.zoom = zoom
        self.bounds = None

    def destroy(self) -> None:
        self._features.clear()
        self.destroyed = True

    def to_feature_collection(self):
        collection = self._geojson.FeatureCollection(list(self._features.values()))
        if self.bounds is not None:
            (south, west), (north, east) = self.bounds
            collection["bbox"] = [west, south, east, north]
        return collection

    def dumps(self) -> str:
        return self._geojson.dumps(self.to_feature_collection())
