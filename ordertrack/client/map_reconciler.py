"""
Map reconciler.

Turns a ``TrackingSessionModel`` into markers, one path and a viewport on a
``MapProvider``, touching only what changed. Pickup and delivery markers are
placed once per view; the current-position marker is recreated on every
update; the path is replaced wholesale whenever its points or style change.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ordertrack.app.core.config import settings
from ordertrack.client.bootstrap import BootstrapState, MapProviderBootstrap
from ordertrack.client.map_provider import (
    MARKER_TITLES,
    PROJECTED,
    TRAVELED,
    LatLng,
    MapProvider,
    MarkerRole,
    MarkerSpec,
    PathStyle,
)
from ordertrack.client.tracking_session import LocationPoint, TrackingSessionModel

logger = logging.getLogger(__name__)

# (loaded library module, initial center, initial zoom) -> provider
ProviderFactory = Callable[[Any, LatLng, int], MapProvider]

ONE_WAY_ROLES = (MarkerRole.PICKUP, MarkerRole.DELIVERY)


class MapView:
    """
    Role-keyed handle arena for one rendered map.

    PICKUP and DELIVERY go absent -> placed and stay placed. CURRENT cycles
    between absent and placed. At most one path handle exists at a time.
    """

    def __init__(self, provider: MapProvider):
        self.provider = provider
        self._markers: Dict[MarkerRole, Any] = {}
        self._path: Optional[Any] = None
        self._path_key: Optional[Tuple[Tuple[LatLng, ...], PathStyle]] = None
        self.destroyed = False

    def has_marker(self, role: MarkerRole) -> bool:
        return role in self._markers

    @property
    def marker_roles(self) -> List[MarkerRole]:
        return list(self._markers)

    @property
    def has_path(self) -> bool:
        return self._path is not None

    def place_fixed(self, spec: MarkerSpec) -> bool:
        if spec.role not in ONE_WAY_ROLES:
            raise ValueError(f"{spec.role.value} is not a fixed marker role")
        if spec.role in self._markers:
            return False
        self._markers[spec.role] = self.provider.place_marker(spec)
        return True

    def replace_current(self, spec: MarkerSpec) -> None:
        self.remove_current()
        self._markers[MarkerRole.CURRENT] = self.provider.place_marker(spec)

    def remove_current(self) -> None:
        handle = self._markers.pop(MarkerRole.CURRENT, None)
        if handle is not None:
            self.provider.remove_marker(handle)

    def replace_path(self, points: Sequence[LatLng], style: PathStyle) -> bool:
        """Swap the path for a new one; returns False when nothing changed."""
        key = (tuple(points), style)
        if key == self._path_key:
            return False
        self.clear_path()
        if len(points) >= 2:
            self._path = self.provider.draw_path(list(points), style)
            self._path_key = key
        return True

    def clear_path(self) -> None:
        if self._path is not None:
            self.provider.remove_path(self._path)
        self._path = None
        self._path_key = None

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.clear_path()
        for handle in self._markers.values():
            self.provider.remove_marker(handle)
        self._markers.clear()
        self.provider.destroy()
        self.destroyed = True


def build_path(session: TrackingSessionModel) -> Optional[Tuple[List[LatLng], PathStyle]]:
    """
    Points and style of the line to draw for ``session``.

    Any recorded history wins: history oldest first, then the current
    position unless it is older than the last history point. With no
    history, the service's route geometry when it has at least two points,
    else a straight projected line from the current position to the
    delivery address. Otherwise nothing.
    """
    current = session.current_location
    history = session.location_history
    if history:
        points = [p.latlng for p in history]
        if current is not None and not _is_older(current, history[-1]):
            points.append(current.latlng)
        return points, TRAVELED
    if session.route is not None and len(session.route.points) >= 2:
        return session.route.points, PROJECTED
    if current is not None and session.delivery_location is not None:
        return [current.latlng, session.delivery_location.latlng], PROJECTED
    return None


def _is_older(point: LocationPoint, than: LocationPoint) -> bool:
    if point.timestamp is None or than.timestamp is None:
        return False
    return point.timestamp < than.timestamp


def _popup(title: str, point: LocationPoint, fallback: str) -> str:
    text = f"<strong>{title}</strong><br/>{point.address or fallback}"
    if point.timestamp is not None:
        text += f"<br/><small>Updated: {point.timestamp:%H:%M:%S}</small>"
    return text


class MapReconciler:
    """
    Applies tracking sessions to one map view.

    The view is created lazily, once the provider bootstrap is ready. Updates
    that arrive before that are held (latest wins) and retried after
    ``retry_delay`` seconds instead of being dropped.
    """

    def __init__(
        self,
        bootstrap: MapProviderBootstrap,
        provider_factory: ProviderFactory,
        default_center: Optional[LatLng] = None,
        default_zoom: Optional[int] = None,
        fit_padding: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self.bootstrap = bootstrap
        self._provider_factory = provider_factory
        self.default_center = default_center or (settings.map_default_lat, settings.map_default_lng)
        self.default_zoom = default_zoom if default_zoom is not None else settings.map_default_zoom
        self.fit_padding = fit_padding if fit_padding is not None else settings.map_fit_padding
        self.retry_delay = retry_delay if retry_delay is not None else settings.map_retry_delay_ms / 1000
        self.view: Optional[MapView] = None
        self._pending: Optional[TrackingSessionModel] = None
        self._closed = False

    @property
    def provider(self) -> Optional[MapProvider]:
        return self.view.provider if self.view else None

    async def update(self, session: TrackingSessionModel) -> bool:
        """
        Render ``session`` as soon as the map provider is ready.

        Returns:
            True if this session was rendered, False if a newer one took its
            place or the reconciler was closed while waiting

        Raises:
            ProviderLoadFailed: The provider will never become ready
        """
        self._pending = session
        while self.bootstrap.state != BootstrapState.READY:
            if self.bootstrap.state == BootstrapState.FAILED:
                raise self.bootstrap.error
            await asyncio.sleep(self.retry_delay)
            if self._closed or self._pending is not session:
                return False

        if self._closed or self._pending is not session:
            return False
        self._pending = None
        self.reconcile(session)
        return True

    def reconcile(self, session: TrackingSessionModel) -> None:
        """Apply one session to the view. Requires a ready provider."""
        if self._closed:
            return
        view = self._ensure_view()

        if not session.is_ready() or not session.has_any_location():
            self._show_empty(view)
            return

        for role, point, fallback in (
            (MarkerRole.PICKUP, session.pickup_location, "Pickup point"),
            (MarkerRole.DELIVERY, session.delivery_location, "Delivery address"),
        ):
            if point is not None and not view.has_marker(role):
                view.place_fixed(MarkerSpec(role, point.latlng, popup=_popup(MARKER_TITLES[role], point, fallback)))

        current = session.current_location
        if current is not None:
            view.replace_current(
                MarkerSpec(
                    MarkerRole.CURRENT,
                    current.latlng,
                    heading=current.heading,
                    popup=_popup(MARKER_TITLES[MarkerRole.CURRENT], current, "Current location"),
                )
            )
        else:
            view.remove_current()

        path = build_path(session)
        if path is None:
            view.clear_path()
        else:
            view.replace_path(*path)

        bounds = [p.latlng for p in session.anchor_points()]
        if bounds:
            view.provider.fit_bounds(bounds, self.fit_padding)

    def clear(self) -> None:
        """Drop the live marker and path of an existing view and recenter."""
        self._pending = None
        if self.view is not None and not self._closed:
            self._show_empty(self.view)

    def _show_empty(self, view: MapView) -> None:
        # Pickup and delivery markers are one-way and stay placed
        view.remove_current()
        view.clear_path()
        view.provider.set_view(self.default_center, self.default_zoom)

    def close(self) -> None:
        """Tear down every map object. Later updates are ignored."""
        self._closed = True
        self._pending = None
        if self.view is not None:
            self.view.destroy()
            self.view = None

    def _ensure_view(self) -> MapView:
        if self.view is None:
            provider = self._provider_factory(self.bootstrap.module, self.default_center, self.default_zoom)
            self.view = MapView(provider)
            logger.debug("Created map view with %s", type(provider).__name__)
        return self.view
