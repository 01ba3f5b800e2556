"""
Tests for the tracking session model.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from ordertrack.client.tracking_session import LocationPoint, TrackingSessionModel

T0 = datetime(2026, 1, 15, 10, 0, 0)


def point(lat, lng, seconds=None, **extra):
    data = {"lat": lat, "lng": lng, **extra}
    if seconds is not None:
        data["timestamp"] = (T0 + timedelta(seconds=seconds)).isoformat()
    return data


FULL_PAYLOAD = {
    "orderId": 7,
    "status": "PICKED_UP",
    "trackingEnabled": True,
    "pickupLocation": point(12.97, 77.59, address="Warehouse"),
    "deliveryLocation": point(12.93, 77.62, address="Home"),
    "currentLocation": point(12.95, 77.61, 20, heading=45),
    "locationHistory": [point(12.97, 77.59, 0), point(12.96, 77.60, 10)],
    "route": {"polyline": [[12.95, 77.61], [12.93, 77.62]], "distanceText": "2.4 km", "durationText": "2 min"},
}


def test_from_payload_reads_camel_case():
    session = TrackingSessionModel.from_payload(FULL_PAYLOAD)

    assert session.order_id == 7
    assert session.is_ready()
    assert session.pickup_location.address == "Warehouse"
    assert session.current_location.heading == 45
    assert len(session.location_history) == 2
    assert session.route.points == [(12.95, 77.61), (12.93, 77.62)]
    assert session.route_summary == "2.4 km, 2 min"


def test_disabled_session_never_exposes_locations():
    payload = dict(FULL_PAYLOAD, trackingEnabled=False)

    session = TrackingSessionModel.from_payload(payload)

    assert not session.is_ready()
    assert session.pickup_location is None
    assert session.delivery_location is None
    assert session.current_location is None
    assert session.location_history == []
    assert session.route is None
    assert not session.has_any_location()


@pytest.mark.parametrize("field, value", [
    ("currentLocation", point(1, 2)),
    ("pickupLocation", point(1, 2)),
    ("deliveryLocation", point(1, 2)),
    ("locationHistory", [point(1, 2)]),
])
def test_any_single_location_counts(field, value):
    session = TrackingSessionModel.from_payload({"trackingEnabled": True, field: value})
    assert session.has_any_location()


def test_no_locations_means_none():
    session = TrackingSessionModel.from_payload(
        {"trackingEnabled": True, "currentLocation": None, "locationHistory": None}
    )
    assert not session.has_any_location()
    assert session.location_history == []


def test_history_is_ordered_by_timestamp():
    payload = dict(FULL_PAYLOAD, locationHistory=[point(3, 3, 30), point(1, 1, 10), point(2, 2, 20)])

    session = TrackingSessionModel.from_payload(payload)

    assert [p.lat for p in session.location_history] == [1, 2, 3]


def test_heading_defaults_to_zero():
    assert LocationPoint(lat=1, lng=2).heading == 0
    assert LocationPoint.model_validate({"lat": 1, "lng": 2, "heading": None}).heading == 0


@pytest.mark.parametrize("lat, lng", [(float("nan"), 0), (0, float("inf")), (91, 0), (0, 181)])
def test_coordinates_must_be_finite_and_in_range(lat, lng):
    with pytest.raises(ValidationError):
        LocationPoint(lat=lat, lng=lng)


def test_replacing_is_not_merging():
    first = TrackingSessionModel.from_payload(FULL_PAYLOAD)
    second = TrackingSessionModel.from_payload({"trackingEnabled": True, "pickupLocation": point(12.97, 77.59)})

    assert first.current_location is not None
    assert second.current_location is None
    assert second.route is None


def test_aware_timestamps_become_naive_utc():
    payload = dict(FULL_PAYLOAD, locationHistory=[
        {"lat": 2, "lng": 2, "timestamp": "2026-01-15T10:00:05"},
        {"lat": 1, "lng": 1, "timestamp": "2026-01-15T11:00:00+02:00"},
    ])

    session = TrackingSessionModel.from_payload(payload)

    assert [p.lat for p in session.location_history] == [1, 2]
    assert session.location_history[0].timestamp == datetime(2026, 1, 15, 9, 0, 0)
    assert session.location_history[0].timestamp.tzinfo is None


def test_route_points_prefer_polyline():
    session = TrackingSessionModel.from_payload(FULL_PAYLOAD)

    assert session.route.points == [(12.95, 77.61), (12.93, 77.62)]


@pytest.mark.parametrize("polyline", [[[12.95]], [[12.95, 77.61, 3.0]], [[float("nan"), 77.61]]])
def test_route_points_must_be_pairs(polyline):
    with pytest.raises(ValidationError):
        TrackingSessionModel.from_payload(dict(FULL_PAYLOAD, route={"polyline": polyline}))
