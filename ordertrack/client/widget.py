"""
Live tracking widget.

Wires one order's poller, map reconciler and provider bootstrap together
and turns every outcome into widget state. Nothing raised by a component
escapes to the caller.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

from ordertrack.app.core.config import settings
from ordertrack.client.bootstrap import get_provider_bootstrap
from ordertrack.client.errors import ProviderLoadFailed
from ordertrack.client.location_fetcher import FetchFailed, LocationFetcher, PollFailure, TrackingNotAvailable
from ordertrack.client.map_provider import MapProvider
from ordertrack.client.map_reconciler import MapReconciler
from ordertrack.client.providers.geojson import GeoJsonMapProvider
from ordertrack.client.providers.leaflet import LeafletMapProvider
from ordertrack.client.scheduling import PeriodicTask
from ordertrack.client.tracking_session import TrackingSessionModel

logger = logging.getLogger(__name__)

# map_provider setting -> (library to load, adapter)
PROVIDERS: Dict[str, Tuple[str, Type[MapProvider]]] = {
    "leaflet": ("folium", LeafletMapProvider),
    "geojson": ("geojson", GeoJsonMapProvider),
}

LOADING_MESSAGE = "Loading tracking data..."


class WidgetState(str, Enum):
    LOADING = "LOADING"
    WAITING = "WAITING"
    LIVE = "LIVE"
    MAP_UNAVAILABLE = "MAP_UNAVAILABLE"


def build_reconciler(provider_name: Optional[str] = None, **kwargs: Any) -> MapReconciler:
    """Reconciler for a configured provider, sharing the process-wide bootstrap."""
    name = provider_name or settings.map_provider
    try:
        module_name, adapter = PROVIDERS[name]
    except KeyError:
        raise ValueError(f"Unknown map provider: {name}") from None
    return MapReconciler(get_provider_bootstrap(module_name), adapter, **kwargs)


class TrackingWidget:
    """
    Tracking view for one order.

    ``mount`` starts the provider load and the poll timer; ``unmount`` stops
    both, tears down the map and makes any poll still in flight a no-op.
    The last good session stays visible through fetch failures.
    """

    def __init__(
        self,
        order_id: int,
        fetcher: LocationFetcher,
        reconciler: MapReconciler,
        poll_interval: Optional[float] = None,
        on_change: Optional[Callable[["TrackingWidget"], None]] = None,
    ):
        self.order_id = order_id
        self.fetcher = fetcher
        self.reconciler = reconciler
        self.on_change = on_change
        self.poll_interval = poll_interval if poll_interval is not None else settings.poll_interval_ms / 1000

        self.state = WidgetState.LOADING
        self.session: Optional[TrackingSessionModel] = None
        self.failure: Optional[PollFailure] = None
        self.map_error: Optional[ProviderLoadFailed] = None
        self.mounted = False

        self._timer = PeriodicTask(self.refresh, self.poll_interval, name=f"track-order-{order_id}")
        self._boot_task: Optional[asyncio.Task] = None
        self._poll_lock = asyncio.Lock()
        self._generation = 0

    async def __aenter__(self) -> "TrackingWidget":
        self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    @property
    def message(self) -> Optional[str]:
        """Text to show inline in the widget, if any."""
        if self.state == WidgetState.MAP_UNAVAILABLE:
            return self.map_error.message
        if self.failure is not None:
            return self.failure.user_message
        if self.state == WidgetState.LOADING:
            return LOADING_MESSAGE
        return None

    @property
    def route_summary(self) -> Optional[str]:
        return self.session.route_summary if self.session else None

    @property
    def polling(self) -> bool:
        return self._timer.running

    def mount(self, poll: bool = True) -> None:
        if self.mounted:
            return
        self.mounted = True
        self._boot_task = asyncio.create_task(self._boot(self._generation))
        if poll:
            self._timer.start()

    async def unmount(self) -> None:
        if not self.mounted:
            return
        self.mounted = False
        self._generation += 1
        await self._timer.aclose()
        if self._boot_task is not None:
            self._boot_task.cancel()
            await asyncio.gather(self._boot_task, return_exceptions=True)
            self._boot_task = None
        self.reconciler.close()

    async def refresh(self) -> None:
        """Run one poll and apply its outcome. Polls never overlap."""
        if not self.mounted:
            return
        generation = self._generation
        async with self._poll_lock:
            result = await self.fetcher.poll(self.order_id)
            if generation != self._generation:
                logger.debug("Discarding poll result for order %s after unmount", self.order_id)
                return
            session = self._apply(result)

        if session is not None and self.state != WidgetState.MAP_UNAVAILABLE:
            await self._render(session, generation)

    def _apply(self, result) -> Optional[TrackingSessionModel]:
        if isinstance(result, TrackingSessionModel):
            self.session = result
            self.failure = None
            self._set_state(WidgetState.LIVE)
            self._notify()
            return result

        self.failure = result
        if isinstance(result, TrackingNotAvailable):
            self.session = None
            self._set_state(WidgetState.WAITING)
            self.reconciler.clear()
        elif isinstance(result, FetchFailed):
            # Stale data beats no data
            logger.info("Keeping last tracking data for order %s: %s", self.order_id, result.message)
        self._notify()
        return None

    async def _render(self, session: TrackingSessionModel, generation: int) -> None:
        try:
            rendered = await self.reconciler.update(session)
        except ProviderLoadFailed as exc:
            if generation == self._generation:
                self._map_failed(exc)
            return
        if rendered and generation == self._generation:
            self._notify()

    async def _boot(self, generation: int) -> None:
        try:
            await self.reconciler.bootstrap.ensure_loaded()
        except ProviderLoadFailed as exc:
            if generation == self._generation:
                self._map_failed(exc)

    def _map_failed(self, exc: ProviderLoadFailed) -> None:
        if self.state == WidgetState.MAP_UNAVAILABLE:
            return
        logger.error("Map unavailable for order %s: %s", self.order_id, exc.detail)
        self.map_error = exc
        self.state = WidgetState.MAP_UNAVAILABLE
        self._notify()

    def _set_state(self, state: WidgetState) -> None:
        # The map failure is terminal for this widget
        if self.state != WidgetState.MAP_UNAVAILABLE:
            self.state = state

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
