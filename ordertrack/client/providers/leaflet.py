"""
Tile-based map adapter.

Renders onto a Leaflet map through folium: OpenStreetMap tiles, div-icon
markers, polylines and a fit-bounds directive. The rendered page is
obtained with ``to_html`` or written with ``save``.
"""

from typing import Any, Sequence

from ordertrack.client.map_provider import LatLng, MapProvider, MarkerRole, MarkerSpec, PathStyle, bounding_box

OSM_TILES = "OpenStreetMap"

_DOT = (
    '<div style="background-color: {color}; width: {size}px; height: {size}px; border-radius: 50%; '
    'border: 3px solid white; box-shadow: 0 2px 4px rgba(0,0,0,0.3);{extra}"></div>'
)


class LeafletMapProvider(MapProvider):
    def __init__(self, folium_module: Any, center: LatLng, zoom: int):
        self._folium = folium_module
        self._map = folium_module.Map(location=list(center), zoom_start=zoom, tiles=OSM_TILES, control_scale=True)
        self._fit = None
        self.center = center
        self.zoom = zoom
        self.bounds = None

    @property
    def map(self):
        return self._map

    def _icon(self, spec: MarkerSpec):
        size = 24 if spec.role == MarkerRole.CURRENT else 20
        extra = f" transform: rotate({spec.heading:g}deg);" if spec.role == MarkerRole.CURRENT else ""
        return self._folium.DivIcon(
            html=_DOT.format(color=spec.color, size=size, extra=extra),
            icon_size=(size, size),
            icon_anchor=(size // 2, size // 2),
            class_name="custom-marker",
        )

    def _detach(self, element) -> None:
        self._map._children.pop(element.get_name(), None)

    def place_marker(self, spec: MarkerSpec):
        popup = self._folium.Popup(spec.popup) if spec.popup else None
        marker = self._folium.Marker(
            location=list(spec.position), icon=self._icon(spec), popup=popup, tooltip=spec.title
        )
        marker.add_to(self._map)
        return marker

    def remove_marker(self, handle) -> None:
        self._detach(handle)

    def draw_path(self, points: Sequence[LatLng], style: PathStyle):
        options = dict(color=style.color, weight=style.weight, opacity=style.opacity)
        if style.dash_array:
            options["dash_array"] = style.dash_array
        line = self._folium.PolyLine(locations=[list(p) for p in points], **options)
        line.add_to(self._map)
        return line

    def remove_path(self, handle) -> None:
        self._detach(handle)

    def fit_bounds(self, points: Sequence[LatLng], padding: int) -> None:
        box = bounding_box(points)
        if box is None:
            return
        if self._fit is not None:
            self._detach(self._fit)
        south_west, north_east = box
        self._fit = self._folium.FitBounds([list(south_west), list(north_east)], padding=(padding, padding))
        self._fit.add_to(self._map)
        self.bounds = box

    def set_view(self, center: LatLng, zoom: int) -> None:
        if self._fit is not None:
            self._detach(self._fit)
            self._fit = None
        self._map.location = list(center)
        self._map.options["zoom"] = zoom
        self.center = center
        self.zoom = zoom
        self.bounds = None

    def destroy(self) -> None:
        self._map._children.clear()
        self._fit = None

    def to_html(self) -> str:
        return self._map.get_root().render()

    def save(self, path: str) -> None:
        self._map.save(path)
