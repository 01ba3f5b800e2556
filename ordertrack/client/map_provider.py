"""
Map provider capability interface.

The reconciler only speaks these primitives; each rendering backend
(tile-based Leaflet, vector GeoJSON) implements them once. Handles returned
by ``place_marker`` and ``draw_path`` are opaque to the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Tuple

LatLng = Tuple[float, float]


class MarkerRole(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    CURRENT = "current"


MARKER_COLORS = {
    MarkerRole.PICKUP: "#4285F4",
    MarkerRole.DELIVERY: "#34A853",
    MarkerRole.CURRENT: "#EA4335",
}

MARKER_TITLES = {
    MarkerRole.PICKUP: "Pickup Location",
    MarkerRole.DELIVERY: "Delivery Location",
    MarkerRole.CURRENT: "Delivery Agent",
}


@dataclass(frozen=True)
class PathStyle:
    name: str
    color: str
    weight: int
    opacity: float
    dash_array: Optional[str] = None


# Solid red trail through recorded samples
TRAVELED = PathStyle("traveled", color="#EA4335", weight=4, opacity=0.8)
# Dashed blue straight line to the delivery address
PROJECTED = PathStyle("projected", color="#4285F4", weight=3, opacity=0.6, dash_array="10, 10")


@dataclass(frozen=True)
class MarkerSpec:
    role: MarkerRole
    position: LatLng
    heading: float = 0.0
    popup: Optional[str] = None

    @property
    def color(self) -> str:
        return MARKER_COLORS[self.role]

    @property
    def title(self) -> str:
        return MARKER_TITLES[self.role]


def bounding_box(points: Iterable[LatLng]) -> Optional[Tuple[LatLng, LatLng]]:
    """South-west and north-east corners covering ``points``, or None if empty."""
    points = list(points)
    if not points:
        return None
    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    return (min(lats), min(lngs)), (max(lats), max(lngs))


class MapProvider(ABC):
    """Drawing primitives a map backend must offer."""

    @abstractmethod
    def place_marker(self, spec: MarkerSpec) -> Any:
        ...

    @abstractmethod
    def remove_marker(self, handle: Any) -> None:
        ...

    @abstractmethod
    def draw_path(self, points: Sequence[LatLng], style: PathStyle) -> Any:
        ...

    @abstractmethod
    def remove_path(self, handle: Any) -> None:
        ...

    @abstractmethod
    def fit_bounds(self, points: Sequence[LatLng], padding: int) -> None:
        ...

    @abstractmethod
    def set_view(self, center: LatLng, zoom: int) -> None:
        ...

    @abstractmethod
    def destroy(self) -> None:
        ...
