"""Tests for domain entities."""

from app.domain.entities.candidate import Candidate
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.value_objects.enums import RequestStatus
from app.domain.value_objects.geo_point import GeoPoint


def _request(**kwargs) -> UrgentRequest:
    defaults = dict(
        id=7, client_id=1, description="No hot water",
        location=GeoPoint(latitude=-34.6118, longitude=-58.3960),
        radius_km=5.0, service_category="plumber", price_estimate=180.0,
    )
    defaults.update(kwargs)
    return UrgentRequest(**defaults)


def test_new_request_is_pending_and_open():
    r = _request()
    assert r.status == RequestStatus.PENDING
    assert r.is_open_for_responses() is True
    assert r.is_terminal() is False


def test_failed_to_match_request_is_closed_for_responses():
    r = _request(match_failed=True)
    assert r.status == RequestStatus.PENDING
    assert r.is_open_for_responses() is False


def test_terminal_statuses():
    assert _request(status=RequestStatus.COMPLETED).is_terminal() is True
    assert _request(status=RequestStatus.CANCELLED).is_terminal() is True
    assert _request(status=RequestStatus.ASSIGNED).is_terminal() is False


def test_request_summary_for_notifications():
    summary = _request().summary()
    assert summary["urgent_request_id"] == 7
    assert summary["location"] == {"lat": -34.6118, "lng": -58.3960}
    assert summary["price_estimate"] == 180.0


def test_candidate_is_open_until_responded():
    c = Candidate(id=1, request_id=7, professional_id=3, distance_km=2.5)
    assert c.is_open() is True
    c.responded = True
    assert c.is_open() is False
