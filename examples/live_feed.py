#!/usr/bin/env python3
"""
PostPulse Live Feed — watch postAdded events while creating posts.

Opens a graphql-transport-ws subscription, then creates a few posts over
HTTP and prints each event as the server pushes it. Every createPost should
produce exactly one event.

Run with: python examples/live_feed.py

Requires: pip install httpx websockets
Backend must be running: http://localhost:4000
"""

import asyncio
import json
import uuid

import httpx
import websockets

from _common import GRAPHQL_URL, WS_URL, check_backend

POSTS_TO_CREATE = 3


async def listen(ready: asyncio.Event, expected: int) -> list[dict]:
    received = []
    async with websockets.connect(WS_URL, subprotocols=["graphql-transport-ws"]) as ws:
        await ws.send(json.dumps({"type": "connection_init"}))
        assert json.loads(await ws.recv())["type"] == "connection_ack"

        await ws.send(json.dumps({
            "id": "feed",
            "type": "subscribe",
            "payload": {"query": "subscription { postAdded { id title } }"},
        }))
        ready.set()

        while len(received) < expected:
            msg = json.loads(await ws.recv())
            if msg["type"] == "next":
                post = msg["payload"]["data"]["postAdded"]
                print(f"   ← postAdded #{post['id']}: {post['title']}")
                received.append(post)

        await ws.send(json.dumps({"id": "feed", "type": "complete"}))
    return received


async def main():
    check_backend()
    run_id = uuid.uuid4().hex[:6]

    ready = asyncio.Event()
    listener = asyncio.create_task(listen(ready, POSTS_TO_CREATE))
    await ready.wait()
    # The server registers the listener right after it reads `subscribe`
    await asyncio.sleep(0.2)

    async with httpx.AsyncClient(timeout=10) as client:
        resp = await client.post(GRAPHQL_URL, json={
            "query": "mutation ($e: String!) { createUser(email: $e, name: \"Feed demo\") { id } }",
            "variables": {"e": f"feed-{run_id}@example.com"},
        })
        author_id = resp.json()["data"]["createUser"]["id"]

        for i in range(POSTS_TO_CREATE):
            title = f"Live post {i + 1} ({run_id})"
            print(f"   → createPost: {title}")
            await client.post(GRAPHQL_URL, json={
                "query": "mutation ($t: String!, $a: Int!) "
                         "{ createPost(title: $t, content: \"...\", authorId: $a) { id } }",
                "variables": {"t": title, "a": author_id},
            })

    received = await asyncio.wait_for(listener, timeout=10)
    print(f"\nReceived {len(received)} event(s) for {POSTS_TO_CREATE} post(s).")


if __name__ == "__main__":
    asyncio.run(main())
