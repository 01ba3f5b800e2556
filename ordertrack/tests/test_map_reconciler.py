"""
Tests for the map reconciler against a recording provider.
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from ordertrack.client.bootstrap import MapProviderBootstrap
from ordertrack.client.errors import ProviderLoadFailed
from ordertrack.client.map_provider import PROJECTED, TRAVELED, MarkerRole
from ordertrack.client.map_reconciler import MapReconciler, build_path
from ordertrack.client.tracking_session import TrackingSessionModel
from ordertrack.tests.factories import RecordingMapProvider

T0 = datetime(2026, 1, 15, 10, 0, 0)
DEFAULT_CENTER = (12.9716, 77.5946)
PICKUP = {"lat": 12.97, "lng": 77.59}
DELIVERY = {"lat": 12.93, "lng": 77.62}


def at(lat, lng, seconds, heading=None):
    return {"lat": lat, "lng": lng, "heading": heading, "timestamp": (T0 + timedelta(seconds=seconds)).isoformat()}


def session(**fields):
    return TrackingSessionModel.from_payload({"trackingEnabled": True, **fields})


async def ready_bootstrap():
    bootstrap = MapProviderBootstrap("fake_tiles_lib", loader=lambda name: object())
    await bootstrap.ensure_loaded()
    return bootstrap


@pytest.fixture
async def reconciler():
    reconciler = MapReconciler(
        await ready_bootstrap(),
        RecordingMapProvider,
        default_center=DEFAULT_CENTER,
        default_zoom=13,
        fit_padding=50,
        retry_delay=0.01,
    )
    yield reconciler
    reconciler.close()


def test_path_is_history_plus_current_in_time_order():
    history = [at(12.970 - i * 0.001, 77.59 + i * 0.001, i * 5) for i in range(4)]
    current = at(12.960, 77.600, 100)

    points, style = build_path(session(locationHistory=list(reversed(history)), currentLocation=current))

    assert len(points) == len(history) + 1
    assert points == [(h["lat"], h["lng"]) for h in history] + [(12.960, 77.600)]
    assert style == TRAVELED


def test_projected_path_without_history():
    points, style = build_path(session(currentLocation=at(12.95, 77.61, 0), deliveryLocation=DELIVERY))

    assert points == [(12.95, 77.61), (12.93, 77.62)]
    assert style == PROJECTED
    assert PROJECTED.dash_array and not TRAVELED.dash_array
    assert PROJECTED.color != TRAVELED.color


def test_history_supersedes_projected_path():
    _, style = build_path(session(
        locationHistory=[at(12.97, 77.59, 0)], currentLocation=at(12.95, 77.61, 5), deliveryLocation=DELIVERY
    ))
    assert style == TRAVELED


def test_no_path_without_current_or_history():
    assert build_path(session(pickupLocation=PICKUP, deliveryLocation=DELIVERY)) is None


def test_stale_current_is_left_off_the_traveled_path():
    history = [at(12.97, 77.59, 3600), at(12.96, 77.60, 3605)]

    points, style = build_path(session(locationHistory=history, currentLocation=at(9.0, 9.0, 0)))

    assert points == [(12.97, 77.59), (12.96, 77.60)]
    assert style == TRAVELED


def test_service_route_drawn_without_history():
    route = {"polyline": [[12.95, 77.61], [12.945, 77.615], [12.93, 77.62]], "distanceText": "2.4 km"}

    points, style = build_path(session(
        currentLocation=at(12.95, 77.61, 0), deliveryLocation=DELIVERY, route=route
    ))

    assert points == [(12.95, 77.61), (12.945, 77.615), (12.93, 77.62)]
    assert style == PROJECTED


def test_single_point_route_falls_back_to_straight_line():
    points, _ = build_path(session(
        currentLocation=at(12.95, 77.61, 0), deliveryLocation=DELIVERY, route={"polyline": [[12.95, 77.61]]}
    ))

    assert points == [(12.95, 77.61), (12.93, 77.62)]


def test_no_locations_recenters_to_default(reconciler):
    reconciler.reconcile(session())

    provider = reconciler.provider
    assert provider.markers == {}
    assert provider.paths == {}
    assert provider.center == DEFAULT_CENTER
    assert provider.fitted is None


def test_empty_session_clears_previous_live_drawing(reconciler):
    reconciler.reconcile(session(
        pickupLocation=PICKUP,
        locationHistory=[at(12.97, 77.59, 0)],
        currentLocation=at(12.95, 77.61, 5),
    ))
    provider = reconciler.provider
    assert provider.paths

    reconciler.reconcile(session())

    assert provider.roles() == ["pickup"]
    assert provider.paths == {}
    assert provider.fitted is None
    assert provider.calls[-1] == ("set_view", 13)


def test_clear_before_first_render_is_a_no_op(reconciler):
    reconciler.clear()

    assert reconciler.view is None


def test_disabled_session_is_never_drawn(reconciler):
    disabled = TrackingSessionModel.from_payload(
        {"trackingEnabled": False, "pickupLocation": PICKUP, "currentLocation": at(1, 2, 0)}
    )

    reconciler.reconcile(disabled)

    assert reconciler.provider.markers == {}
    assert reconciler.provider.count("draw_path") == 0


def test_scenario_pickup_and_delivery_only(reconciler):
    reconciler.reconcile(session(pickupLocation=PICKUP, deliveryLocation=DELIVERY))

    provider = reconciler.provider
    assert provider.roles() == ["delivery", "pickup"]
    assert provider.paths == {}
    assert sorted(provider.fitted[0]) == sorted([(12.97, 77.59), (12.93, 77.62)])
    assert provider.fitted[1] == 50


def test_fixed_markers_are_placed_once(reconciler):
    for i in range(3):
        reconciler.reconcile(session(
            pickupLocation=PICKUP, deliveryLocation=DELIVERY, currentLocation=at(12.95, 77.61 + i * 0.001, i)
        ))

    provider = reconciler.provider
    placed = [role for name, role in provider.calls if name == "place_marker"]
    assert placed.count(MarkerRole.PICKUP) == 1
    assert placed.count(MarkerRole.DELIVERY) == 1
    assert placed.count(MarkerRole.CURRENT) == 3
    removed = [role for name, role in provider.calls if name == "remove_marker"]
    assert removed == [MarkerRole.CURRENT, MarkerRole.CURRENT]
    assert provider.roles() == ["current", "delivery", "pickup"]


def test_current_marker_carries_heading(reconciler):
    reconciler.reconcile(session(currentLocation=at(12.95, 77.61, 0, heading=135)))

    (spec,) = reconciler.provider.markers.values()
    assert spec.role == MarkerRole.CURRENT
    assert spec.heading == 135


def test_path_replaced_wholesale_when_it_changes(reconciler):
    history = [at(12.97, 77.59, 0), at(12.96, 77.60, 5)]
    reconciler.reconcile(session(locationHistory=history, currentLocation=at(12.95, 77.61, 10)))
    reconciler.reconcile(session(locationHistory=history, currentLocation=at(12.95, 77.61, 10)))
    reconciler.reconcile(session(locationHistory=history[1:], currentLocation=at(12.94, 77.615, 15)))

    provider = reconciler.provider
    assert provider.count("draw_path") == 2
    assert provider.count("remove_path") == 1
    (points, style), = provider.paths.values()
    assert points == [(12.96, 77.60), (12.94, 77.615)]
    assert style == TRAVELED


def test_path_removed_when_source_disappears(reconciler):
    reconciler.reconcile(session(currentLocation=at(12.95, 77.61, 0), deliveryLocation=DELIVERY))
    reconciler.reconcile(session(deliveryLocation=DELIVERY))

    provider = reconciler.provider
    assert provider.paths == {}
    assert provider.roles() == ["delivery"]


def test_fit_bounds_covers_anchor_points(reconciler):
    reconciler.reconcile(session(
        pickupLocation=PICKUP,
        deliveryLocation=DELIVERY,
        currentLocation=at(12.95, 77.61, 10),
        locationHistory=[at(13.5, 78.0, 0)],
    ))

    assert sorted(reconciler.provider.fitted[0]) == sorted([(12.97, 77.59), (12.93, 77.62), (12.95, 77.61)])


def test_close_tears_down_everything(reconciler):
    reconciler.reconcile(session(
        pickupLocation=PICKUP, deliveryLocation=DELIVERY,
        currentLocation=at(12.95, 77.61, 0),
    ))
    provider = reconciler.provider

    reconciler.close()
    reconciler.reconcile(session(pickupLocation=PICKUP))

    assert provider.markers == {}
    assert provider.paths == {}
    assert provider.destroyed
    assert reconciler.view is None


@pytest.mark.asyncio
async def test_update_waits_for_provider_then_renders():
    release = asyncio.Event()
    loop = asyncio.get_running_loop()

    def slow_loader(name):
        asyncio.run_coroutine_threadsafe(release.wait(), loop).result()
        return object()

    bootstrap = MapProviderBootstrap("slow_tiles_lib", loader=slow_loader)
    reconciler = MapReconciler(bootstrap, RecordingMapProvider, retry_delay=0.01)
    boot = asyncio.ensure_future(bootstrap.ensure_loaded())

    update = asyncio.ensure_future(reconciler.update(session(pickupLocation=PICKUP)))
    await asyncio.sleep(0.05)
    assert reconciler.view is None
    assert not update.done()

    release.set()
    assert await update is True
    await boot
    assert reconciler.provider.roles() == ["pickup"]


@pytest.mark.asyncio
async def test_update_keeps_only_latest_pending_session():
    release = asyncio.Event()
    loop = asyncio.get_running_loop()

    def slow_loader(name):
        asyncio.run_coroutine_threadsafe(release.wait(), loop).result()
        return object()

    bootstrap = MapProviderBootstrap("slow_tiles_lib", loader=slow_loader)
    reconciler = MapReconciler(bootstrap, RecordingMapProvider, retry_delay=0.01)
    boot = asyncio.ensure_future(bootstrap.ensure_loaded())

    older = asyncio.ensure_future(reconciler.update(session(pickupLocation=PICKUP)))
    await asyncio.sleep(0.02)
    newer = asyncio.ensure_future(reconciler.update(session(deliveryLocation=DELIVERY)))
    await asyncio.sleep(0.02)
    release.set()

    assert await older is False
    assert await newer is True
    await boot
    assert reconciler.provider.roles() == ["delivery"]


@pytest.mark.asyncio
async def test_update_raises_when_provider_failed():
    def broken(name):
        raise OSError("blocked by network policy")

    bootstrap = MapProviderBootstrap("blocked_tiles_lib", loader=broken)
    with pytest.raises(ProviderLoadFailed):
        await bootstrap.ensure_loaded()

    reconciler = MapReconciler(bootstrap, RecordingMapProvider, retry_delay=0.01)
    with pytest.raises(ProviderLoadFailed):
        await reconciler.update(session(pickupLocation=PICKUP))
    assert reconciler.view is None
