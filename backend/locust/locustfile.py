"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test trip overbooking
  locust -f locustfile.py --tags ledger       # Test token overspending
  locust -f locustfile.py --tags throughput   # Test available-jobs cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, task, between, tag, events

PASSWORD = "loadtest123"

# Shared state
TRIP_IDS = []
CONCURRENCY_TRIP_ID = None


def random_email():
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"load_{suffix}@test.com"


def register_and_login(client, role="client"):
    """Create a fresh account and return its auth headers ({} on failure)."""
    email = random_email()
    client.post("/api/v1/auth/register", json={
        "name": f"Load {role}",
        "email": email,
        "password": PASSWORD,
        "role": role,
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


def trip_payload(title, seats):
    start = date.today() + timedelta(days=random.randint(10, 90))
    return {
        "title": title,
        "description": "Load test trip",
        "price": "199.00",
        "max_seats": seats,
        "location": random.choice(["Lisbon", "Kyoto", "Cusco", "Reykjavik"]),
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=5)).isoformat(),
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: first agent user creates the 10-seat concurrency trip")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 clients -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(seats_booked) FROM bookings WHERE trip_id = X AND status <> 'cancelled';
    Should be <= 10, and trips.available_seats must never be negative.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_TRIP_ID

        if CONCURRENCY_TRIP_ID is None:
            agent_headers = register_and_login(self.client, role="agent")
            resp = self.client.post(
                "/api/v1/agent/trips",
                json=trip_payload("Concurrency Test Trip", 10),
                headers=agent_headers,
            )
            if resp.status_code == 201 and CONCURRENCY_TRIP_ID is None:
                CONCURRENCY_TRIP_ID = resp.json()["data"]["id"]
                print(f"\nCreated trip {CONCURRENCY_TRIP_ID} with 10 seats\n")

        self.headers = register_and_login(self.client)

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_TRIP_ID or not self.headers:
            return

        with self.client.post(
            f"/api/v1/trips/{CONCURRENCY_TRIP_ID}/book",
            json={"seats_booked": 1},
            headers=self.headers,
            name="/api/v1/trips/{id}/book [contended]",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json().get("error") == "insufficient_seats":
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class LedgerUser(HttpUser):
    """
    TEST 2: Ledger - parallel job posts against one balance

    Run: locust -f locustfile.py --tags ledger -u 50 -r 25 --run-time 30s

    Each user buys the basic package (100 tokens) and posts 30-token jobs
    as fast as it can. At most 3 posts per user may succeed; the balance
    must never go negative.
    """
    wait_time = between(0, 0.05)

    def on_start(self):
        self.headers = register_and_login(self.client)
        if self.headers:
            self.client.post(
                "/api/v1/tokens/purchase",
                json={"package_id": "basic", "payment_reference": f"load_{random.randint(1, 10**9)}"},
                headers=self.headers,
            )

    @tag("ledger")
    @task
    def post_job(self):
        if not self.headers:
            return

        with self.client.post(
            "/api/v1/jobs",
            json={
                "title": "Load test job",
                "description": "Find me an itinerary for a long weekend",
                "token_cost": 30,
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json().get("error") in ("insufficient_tokens", "insufficient_balance"):
                resp.success()  # Expected once the balance runs out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_available_jobs(self):
        """Hammer the cached endpoint."""
        self.client.get("/api/v1/jobs/available", name="/api/v1/jobs/available [cached]")

    @tag("throughput", "read")
    @task(5)
    def browse_trips(self):
        page = random.randint(1, 5)
        self.client.get(f"/api/v1/trips?page={page}&page_size=20", name="/api/v1/trips")

    @tag("throughput", "read")
    @task(3)
    def get_trip_detail(self):
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}", name="/api/v1/trips/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register_and_login(self.client)

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_trip_id(self):
        with self.client.post("/api/v1/trips/999999/book", json={"seats_booked": 1},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def zero_seats(self):
        with self.client.post("/api/v1/trips/1/book", json={"seats_booked": 0},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def huge_seats(self):
        with self.client.post("/api/v1/trips/1/book", json={"seats_booked": 999999},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def unknown_package(self):
        with self.client.post("/api/v1/tokens/purchase",
                              json={"package_id": "gold", "payment_reference": "x"},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/jobs", data="not json at all",
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/trips/1/book", json={"seats_booked": 1},
                              catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 5: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing trips and jobs
      - Some bookings and cancellations
      - Rare token purchases and job posts
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = register_and_login(self.client)
        self.booking_ids = []

    @task(50)
    def browse_trips(self):
        resp = self.client.get("/api/v1/trips?page=1&page_size=20")
        if resp.status_code == 200:
            for trip in resp.json()["data"]["trips"]:
                if trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @task(20)
    def view_trip(self):
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}", name="/api/v1/trips/{id}")

    @task(15)
    def browse_jobs(self):
        self.client.get("/api/v1/jobs/available")

    @task(8)
    def book_trip(self):
        if TRIP_IDS and self.headers:
            resp = self.client.post(
                f"/api/v1/trips/{random.choice(TRIP_IDS)}/book",
                json={"seats_booked": random.randint(1, 3)},
                headers=self.headers,
                name="/api/v1/trips/{id}/book",
            )
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["data"]["id"])

    @task(2)
    def cancel_booking(self):
        if self.booking_ids:
            booking_id = self.booking_ids.pop()
            self.client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=self.headers,
                             name="/api/v1/bookings/{id}/cancel")

    @task(2)
    def buy_tokens(self):
        if self.headers:
            self.client.post(
                "/api/v1/tokens/purchase",
                json={"package_id": "basic", "payment_reference": f"load_{random.randint(1, 10**9)}"},
                headers=self.headers,
            )

    @task(1)
    def post_job(self):
        if self.headers:
            self.client.post(
                "/api/v1/jobs",
                json={
                    "title": f"Trip planning {random.randint(1, 10000)}",
                    "description": "Looking for an agent to plan a family holiday",
                    "token_cost": random.randint(5, 20),
                },
                headers=self.headers,
            )
