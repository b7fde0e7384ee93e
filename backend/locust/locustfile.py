"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags checkin      # Check-in rush at event start
  locust -f locustfile.py --tags throughput   # Public event cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events
from datetime import datetime, timezone, timedelta

# Venue used by every load test event
VENUE_LAT = 40.7128
VENUE_LNG = -74.0060

# Shared state
EVENT_IDS = []
RUSH_EVENT = {"id": None, "headers": None}

def random_username():
    return "org_" + "".join(random.choices(string.ascii_lowercase, k=8))

def random_attendee():
    suffix = random.randint(10000, 99999)
    return f"Attendee {suffix}", f"load_{suffix}@test.com"

def near_venue(max_offset_m=30):
    # ~111km per degree of latitude
    offset = random.uniform(-max_offset_m, max_offset_m) / 111_195
    return VENUE_LAT + offset, VENUE_LNG


def register_organization(client):
    username = random_username()
    password = "loadtest123"
    client.post("/api/v1/auth/register", json={
        "username": username,
        "name": "Load Test Org",
        "password": password,
    })
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    if resp.status_code == 200:
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return {}


def create_open_event(client, headers, title):
    """An event whose registration window is open right now."""
    now = datetime.now(timezone.utc)
    resp = client.post("/api/v1/events/",
        json={
            "title": title,
            "start_time": (now - timedelta(minutes=5)).isoformat(),
            "end_time": (now + timedelta(hours=2)).isoformat(),
            "location_address": "Load Test Hall",
            "location_lat": VENUE_LAT,
            "location_lng": VENUE_LNG,
            "location_radius_meters": 50,
        },
        headers=headers,
    )
    if resp.status_code == 201:
        return resp.json()["id"]
    return None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print("SETUP: Check-in rush event is created by the first CheckInRushUser")
    print("="*60)


class CheckInRushUser(HttpUser):
    """
    TEST 1: Check-in rush - a whole audience arrives at once

    Run: locust -f locustfile.py --tags checkin -u 200 -r 50 --run-time 60s

    Each simulated attendee fetches the public event (cache hit after the
    first), receives a fresh QR token and submits a check-in from inside
    the radius. Every request is a fresh client, so none carries the
    duplicate cookie.
    """
    wait_time = between(0, 0.2)

    def on_start(self):
        if not RUSH_EVENT["id"]:
            headers = register_organization(self.client)
            if headers:
                RUSH_EVENT["headers"] = headers
                RUSH_EVENT["id"] = create_open_event(self.client, headers, "Check-in Rush")
                if RUSH_EVENT["id"]:
                    print(f"\n✓ Created rush event {RUSH_EVENT['id']}\n")

    @tag("checkin")
    @task
    def check_in(self):
        event_id = RUSH_EVENT["id"]
        if not event_id:
            return

        self.client.get(f"/api/v1/public/events/{event_id}", name="/api/v1/public/events/{id}")

        token_resp = self.client.get(
            f"/api/v1/events/{event_id}/qr-token",
            headers=RUSH_EVENT["headers"],
            name="/api/v1/events/{id}/qr-token",
        )
        if token_resp.status_code != 200:
            return

        name, email = random_attendee()
        lat, lng = near_venue()
        self.client.cookies.clear()
        with self.client.post("/api/v1/attendance",
            json={
                "event_id": event_id,
                "name": name,
                "email": email,
                "lat": lat,
                "lng": lng,
                "qr_token": token_resp.json()["token"],
            },
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code} {resp.text[:100]}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - public event cache

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        if len(EVENT_IDS) < 5:
            headers = register_organization(self.client)
            if headers:
                event_id = create_open_event(self.client, headers, f"Event {random.randint(1, 10000)}")
                if event_id:
                    EVENT_IDS.append(event_id)

    @tag("throughput", "read")
    @task(10)
    def public_event(self):
        """Hammer the cached endpoint."""
        if EVENT_IDS:
            self.client.get(f"/api/v1/public/events/{random.choice(EVENT_IDS)}",
                name="/api/v1/public/events/{id} [cached]")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        lat, lng = near_venue()
        with self.client.post("/api/v1/attendance",
            json={"event_id": "no-such-event", "name": "X", "email": "x@test.com",
                  "lat": lat, "lng": lng, "qr_token": "a.b.c"},
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def forged_token(self):
        if not EVENT_IDS:
            return
        event_id = random.choice(EVENT_IDS)
        lat, lng = near_venue()
        now_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        with self.client.post("/api/v1/attendance",
            json={"event_id": event_id, "name": "X", "email": "x@test.com",
                  "lat": lat, "lng": lng, "qr_token": f"{event_id}.{now_ms}.forged"},
            catch_response=True,
            name="/api/v1/attendance [forged]",
        ) as resp:
            self._expect(resp, [403])

    @tag("edge")
    @task
    def bad_coordinates(self):
        with self.client.post("/api/v1/attendance",
            json={"event_id": "x", "name": "X", "email": "x@test.com", "lat": 123.0, "lng": 0.0},
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/attendance",
            data="not json at all",
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.get("/api/v1/events/", catch_response=True) as resp:
            self._expect(resp, [401])
