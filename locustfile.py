"""
Locust load tests for the public claim endpoints.

Install: pip install locust
Run: locust -f locustfile.py --host=http://127.0.0.1:5050

For headless: locust -f locustfile.py --host=http://127.0.0.1:5050 \
    --users 10 --spawn-rate 2 --run-time 1m --headless

Point LOCUST_CAMPAIGN_SLUG at a test-mode campaign: submissions create real
claims. Run the server with RATE_LIMIT_ENABLED=0 or every user shares one
IP bucket.
"""

import os
import uuid
from locust import HttpUser, task, between

SLUG = os.getenv("LOCUST_CAMPAIGN_SLUG", "demo-campaign")


class ClaimVisitor(HttpUser):
    wait_time = between(1, 3)

    @task(10)
    def ping(self):
        self.client.get("/__ping")

    @task(8)
    def landing_page(self):
        self.client.get(f"/api/campaigns/{SLUG}", name="/api/campaigns/[slug]")

    @task(2)
    def submit_claim(self):
        suffix = uuid.uuid4().hex[:8]
        with self.client.post(
            f"/api/campaigns/{SLUG}/claim",
            name="/api/campaigns/[slug]/claim",
            json={
                "firstName": "Load",
                "lastName": f"Test {suffix}",
                "email": f"load+{suffix}@example.com",
                "address1": f"{suffix} Main St",
                "city": "Springfield",
                "region": "IL",
                "postalCode": "62701",
                "country": "US",
                "consent": True,
            },
            catch_response=True,
        ) as r:
            # capacity, duplicate and per-IP limits are expected under load
            if r.status_code in (201, 400, 409, 429):
                r.success()

    @task(1)
    def leaderboard(self):
        self.client.get("/api/leaderboard", params={"key": os.getenv("LOCUST_LEADERBOARD_KEY", "")})
