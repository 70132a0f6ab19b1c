"""
Race condition handling for event registration.

Creates an event with capacity=1, fires 10 concurrent registration
requests through the API and verifies that exactly one succeeds and the
event never holds more registrations than its capacity.
"""

from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from events_api.main import create_app
from events_api.services.registrations import RegistrationService
from events_api.tests.factories import TEST_SETTINGS, make_users


def create_event(client: TestClient, title: str, capacity: int, date: str) -> int:
    response = client.post(
        "/events",
        json={"title": title, "date": date, "location": "Vienna", "capacity": capacity},
    )
    response.raise_for_status()
    return response.json()["eventId"]


def register(client: TestClient, event_id: int, user_id: int) -> tuple[int, dict]:
    response = client.post(f"/events/{event_id}/register", json={"userId": user_id})
    return response.status_code, response.json()


def test_race_condition(file_service: RegistrationService, redis_client):
    app = create_app(TEST_SETTINGS, service=file_service, redis_client=redis_client)

    with file_service.session_factory() as db:
        user_ids = [user.id for user in make_users(db, 10)]

    with TestClient(app) as client:
        event_id = create_event(client, "Race Test Event", capacity=1, date="2099-01-01T10:00:00Z")

        with ThreadPoolExecutor(max_workers=len(user_ids)) as executor:
            futures = [executor.submit(register, client, event_id, user_id) for user_id in user_ids]
            results = [f.result() for f in futures]

        stats = client.get(f"/events/{event_id}/stats").json()
        detail = client.get(f"/events/{event_id}").json()

    successful = [body for status, body in results if status == 200]
    failed = [body for status, body in results if status != 200]

    assert len(successful) == 1, f"Expected 1 successful registration, got {len(successful)}"
    assert len(failed) == 9, f"Expected 9 failed registrations, got {len(failed)}"
    assert all(body == {"error": "Event is full"} for body in failed)

    assert stats["totalRegistrations"] == 1
    assert stats["remainingCapacity"] == 0
    assert stats["percentageUsed"] == "100%"
    assert len(detail["registeredUsers"]) == 1
