#!/usr/bin/env python3
"""
PostPulse Quickstart — the full post lifecycle in one script.

Creates a user → post → lists → updates → deletes, checking the store after
each step. Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:4000
"""

import uuid

import httpx

from _common import check_backend, gql


def main():
    run_id = uuid.uuid4().hex[:6]
    check_backend()
    client = httpx.Client(timeout=10)

    # ── Create author ─────────────────────────────────────────────
    print("\n1. Creating author...")
    user = gql(
        client,
        "mutation ($email: String!, $name: String!) { createUser(email: $email, name: $name) { id name } }",
        email=f"demo-{run_id}@example.com",
        name=f"Demo {run_id}",
    )["createUser"]
    print(f"   User #{user['id']}: {user['name']}")

    # ── Create post ───────────────────────────────────────────────
    print("\n2. Creating post...")
    post = gql(
        client,
        "mutation ($title: String!, $content: String!, $authorId: Int!) {"
        " createPost(title: $title, content: $content, authorId: $authorId) { id title content } }",
        title="Hello, world",
        content="My first real-time post",
        authorId=user["id"],
    )["createPost"]
    print(f"   Post #{post['id']}: {post['title']}")

    # ── List posts ────────────────────────────────────────────────
    print("\n3. Listing posts...")
    posts = gql(client, "{ posts { id title } }")["posts"]
    assert any(p["id"] == post["id"] for p in posts), "new post missing from list"
    print(f"   {len(posts)} post(s), including #{post['id']}")

    # ── Update ────────────────────────────────────────────────────
    print("\n4. Updating title...")
    updated = gql(
        client,
        "mutation ($id: Int!) { updatePost(id: $id, title: \"Hello again\") { id title content } }",
        id=post["id"],
    )["updatePost"]
    print(f"   Post #{updated['id']}: {updated['title']} / {updated['content']}")

    # ── Delete ────────────────────────────────────────────────────
    print("\n5. Deleting post...")
    gql(client, "mutation ($id: Int!) { deletePost(id: $id) { id } }", id=post["id"])
    gone = gql(client, "query ($id: Int!) { post(id: $id) { id } }", id=post["id"])["post"]
    assert gone is None, "post still readable after delete"
    print(f"   Post #{post['id']} deleted (post(id) → null)")

    print("\nDone.")


if __name__ == "__main__":
    main()
