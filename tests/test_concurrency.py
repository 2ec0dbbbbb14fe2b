"""
Concurrency Tests
- Concurrent requests against one queue are serialised by its lock
- No insert is lost and extraction order is preserved
"""
import pytest
import asyncio
from httpx import AsyncClient, ASGITransport
from main import app, app_state


@pytest.mark.asyncio
async def test_concurrent_inserts_no_lost_items():
    """200 concurrent inserts must all land in the queue with a distinct handle."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        tasks = []
        for i in range(200):
            tasks.append(client.post(
                "/v1/queues/race_queue/insert",
                json={"priority": (i * 37) % 101, "value": i}
            ))

        responses = await asyncio.gather(*tasks)
        assert all(r.status_code == 200 for r in responses)

        handles = {r.json()["handle"] for r in responses}
        assert len(handles) == 200

        status = await client.get("/v1/queues/race_queue/status")
        assert status.json()["size"] == 200

        extracted = await asyncio.gather(*[
            client.post("/v1/queues/race_queue/extract") for _ in range(200)
        ])
        priorities = sorted(r.json()["priority"] for r in extracted)
        assert priorities == sorted((i * 37) % 101 for i in range(200))
        assert app_state["queues"]["race_queue"].is_empty()


@pytest.mark.asyncio
async def test_concurrent_inserts_respect_capacity():
    """Concurrent inserts into a bounded queue never exceed its capacity."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.put(
            "/v1/queues/config",
            json={"name": "bounded", "capacity": 50}
        )

        responses = await asyncio.gather(*[
            client.post("/v1/queues/bounded/insert", json={"priority": i, "value": i})
            for i in range(120)
        ])

        accepted = sum(1 for r in responses if r.status_code == 200)
        rejected = sum(1 for r in responses if r.status_code == 409)
        assert accepted == 50
        assert rejected == 70

        queue = app_state["queues"]["bounded"]
        assert queue.is_full()
        assert queue.size() == 50


@pytest.mark.asyncio
async def test_concurrent_updates_different_queues_independent():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        handles = {}
        for q in range(5):
            handles[q] = [
                (await client.post(
                    f"/v1/queues/queue_{q}/insert",
                    json={"priority": 100 + i, "value": i}
                )).json()["handle"]
                for i in range(10)
            ]

        # Promote the last item of every queue concurrently
        await asyncio.gather(*[
            client.post(
                f"/v1/queues/queue_{q}/decrease",
                json={"handle": handles[q][-1], "priority": 0}
            )
            for q in range(5)
        ])

        for q in range(5):
            response = await client.get(f"/v1/queues/queue_{q}/min")
            assert response.json() == {"priority": 0, "value": 9}
