"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags duplicate    # Same identity from many users
  locust -f locustfile.py --tags throughput   # Distinct registrations
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py --tags read         # Catalog and selection checks
  locust -f locustfile.py                     # All tests
"""

import json
import random
import uuid

from locust import HttpUser, task, between, tag, events

# 1x1 PNG
SCREENSHOT = bytes.fromhex(
    "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
    "0000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)

SELECTIONS = [
    (["icon-iq"], {}),
    (["code-debugging", "meme-contest"], {}),
    (["paper-presentation", "connexions"], {"paper-presentation": "code-debugging"}),
    (["blind-coding", "icon-iq", "photography"], {}),
]

DUPLICATE_EMAIL = f"dup_{uuid.uuid4().hex[:8]}@test.com"
DUPLICATE_MOBILE = str(random.randint(6000000000, 6999999999))


def random_mobile() -> str:
    return str(random.randint(7000000000, 9999999999))


def registration_form(email: str, mobile: str, **overrides) -> dict:
    event_ids, fallbacks = random.choice(SELECTIONS)
    form = {
        "name": "Load Tester",
        "email": email,
        "mobile": mobile,
        "college": "Load College",
        "year": "3rd Year",
        "selectedEventIds": json.dumps(event_ids),
        "fallbackSelections": json.dumps(fallbacks),
        "transactionId": f"TXN{uuid.uuid4().hex[:10].upper()}",
    }
    form.update(overrides)
    return form


def screenshot_file() -> dict:
    return {"screenshot": ("payment.png", SCREENSHOT, "image/png")}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Duplicate identity for this run: {DUPLICATE_EMAIL} / {DUPLICATE_MOBILE}")
    print("=" * 60)


class DuplicateSubmissionUser(HttpUser):
    """
    TEST 1: Many users submit the same email and mobile at once.

    Run: locust -f locustfile.py --tags duplicate -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM users WHERE email = '<printed email>';
    Must be exactly 1, with no orphan event_registrations or payments.
    """
    wait_time = between(0, 0.1)

    @tag("duplicate")
    @task
    def register_same_identity(self):
        with self.client.post(
            "/api/v1/register",
            data=registration_form(DUPLICATE_EMAIL, DUPLICATE_MOBILE),
            files=screenshot_file(),
            name="/api/v1/register [duplicate]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()  # One 200, everything else 409
            else:
                resp.failure(f"Unexpected: {resp.status_code} {resp.text[:200]}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Distinct registrations, measuring end-to-end latency
    including the screenshot upload.

    Run: locust -f locustfile.py --tags throughput -u 50 -r 10 --run-time 60s

    Compare P95 with and without Redis; the gate adds one round trip.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput")
    @task
    def register(self):
        email = f"load_{uuid.uuid4().hex[:12]}@test.com"
        with self.client.post(
            "/api/v1/register",
            data=registration_form(email, random_mobile()),
            files=screenshot_file(),
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Random mobile collided with an earlier one
            else:
                resp.failure(f"Unexpected: {resp.status_code} {resp.text[:200]}")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad input must be a 400, never a 500.

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def _expect_400(self, data: dict, files=None, name: str = "/api/v1/register [edge]"):
        with self.client.post(
            "/api/v1/register",
            data=data,
            files=files,
            name=name,
            catch_response=True,
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        form = registration_form("edge@test.com", random_mobile(), selectedEventIds='["does-not-exist"]')
        self._expect_400(form, screenshot_file())

    @tag("edge")
    @task
    def short_mobile(self):
        self._expect_400(registration_form("edge@test.com", "12345"), screenshot_file())

    @tag("edge")
    @task
    def over_capacity(self):
        form = registration_form(
            "edge@test.com",
            random_mobile(),
            selectedEventIds='["code-debugging", "icon-iq", "meme-contest", "photography"]',
        )
        self._expect_400(form, screenshot_file())

    @tag("edge")
    @task
    def time_conflict(self):
        form = registration_form(
            "edge@test.com",
            random_mobile(),
            selectedEventIds='["blind-coding", "hunt-mods"]',
        )
        self._expect_400(form, screenshot_file())

    @tag("edge")
    @task
    def missing_screenshot(self):
        self._expect_400(registration_form("edge@test.com", random_mobile()))

    @tag("edge")
    @task
    def malformed_selection(self):
        form = registration_form("edge@test.com", random_mobile(), selectedEventIds="not json at all")
        self._expect_400(form, screenshot_file())


class BrowsingUser(HttpUser):
    """
    TEST 4: Registration wizard traffic before submission.

    Run: locust -f locustfile.py --tags read -u 200 -r 20 --run-time 120s
    """
    wait_time = between(1, 3)

    @tag("read")
    @task(10)
    def list_events(self):
        self.client.get("/api/v1/events")

    @tag("read")
    @task(20)
    def check_selection(self):
        event_ids, _ = random.choice(SELECTIONS)
        self.client.post(
            "/api/v1/selection/check",
            json={
                "selectedEventIds": event_ids[:-1],
                "candidateId": event_ids[-1],
            },
        )

    @tag("read")
    @task(5)
    def fallbacks(self):
        self.client.get(
            "/api/v1/events/paper-presentation/fallbacks",
            params={"selected": ["paper-presentation"]},
            name="/api/v1/events/{id}/fallbacks",
        )

    @tag("read")
    @task(1)
    def health_check(self):
        self.client.get("/health")
