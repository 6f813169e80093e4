"""
Shared helpers for PostPulse examples.

Handles the health check and GraphQL plumbing so each example can focus
on its specific flow.
"""

import sys

import httpx

BASE = "http://localhost:4000"
GRAPHQL_URL = f"{BASE}/graphql"
WS_URL = "ws://localhost:4000/graphql"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/api/v1/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  postpulse serve --reload")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database:    {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Subscribers: {health['subscribers']}")

    if health["database"] != "ok":
        print(f"\nERROR: Database is not reachable: {health['database']}")
        sys.exit(1)


def gql(client: httpx.Client, query: str, **variables) -> dict:
    """Run one GraphQL operation; exit on errors, return `data`."""
    resp = client.post(GRAPHQL_URL, json={"query": query, "variables": variables})
    resp.raise_for_status()
    body = resp.json()
    if body.get("errors"):
        print(f"ERROR: {body['errors'][0]['message']}")
        sys.exit(1)
    return body["data"]
