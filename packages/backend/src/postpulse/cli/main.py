"""PostPulse CLI — run the server, manage posts, and watch them arrive live.

Usage:
    postpulse serve                               # Run the API (uvicorn)
    postpulse posts                               # List posts
    postpulse post 7                              # Show one post
    postpulse create "Hello" "First post" -a 1    # Create a post
    postpulse update 7 --title "Hello again"      # Edit a post
    postpulse delete 7                            # Delete a post
    postpulse users                               # List users
    postpulse add-user ada@example.com "Ada"      # Create a user
    postpulse watch                               # Stream new posts as they're created
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
from typing import Any, Optional

import click
import httpx

from postpulse import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"
GRAPHQL_PATH = "/graphql"

POST_FIELDS = "id title content authorId"

# graphql-transport-ws message types
GQL_CONNECTION_INIT = "connection_init"
GQL_CONNECTION_ACK = "connection_ack"
GQL_SUBSCRIBE = "subscribe"
GQL_NEXT = "next"
GQL_ERROR = "error"
GQL_COMPLETE = "complete"
GQL_PING = "ping"
GQL_PONG = "pong"


def _api_url() -> str:
    return os.environ.get("POSTPULSE_API_URL", DEFAULT_API_URL).rstrip("/")


def _ws_url() -> str:
    url = _api_url()
    if url.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    return url + GRAPHQL_PATH


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the PostPulse backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _graphql(query: str, variables: Optional[dict[str, Any]] = None) -> dict:
    """POST a GraphQL operation and return its `data`, failing on `errors`."""
    async with _client() as c:
        r = await c.post(GRAPHQL_PATH, json={"query": query, "variables": variables or {}})
        r.raise_for_status()
        body = r.json()
    if body.get("errors"):
        messages = "; ".join(e.get("message", "unknown error") for e in body["errors"])
        raise click.ClickException(messages)
    return body["data"]


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _print_post(post: dict, label: Optional[str] = None):
    prefix = click.style(f"[{label}] ", fg="green") if label else ""
    click.echo(f"{prefix}#{post['id']} {click.style(post['title'], bold=True)}"
               f"  (author {post['authorId']})")
    click.echo(f"    {post['content']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="postpulse")
def main():
    """PostPulse — real-time posts over GraphQL."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: POSTPULSE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: POSTPULSE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from postpulse.config import settings

    uvicorn.run(
        "postpulse.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def posts(as_json: bool):
    """List all posts."""
    data = _run(_graphql(f"query {{ posts {{ {POST_FIELDS} }} }}"))
    rows = data["posts"]
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        click.echo("No posts yet.")
        return
    _print_table(rows, [
        ("ID", "id", 6),
        ("TITLE", "title", 30),
        ("AUTHOR", "authorId", 6),
        ("CONTENT", "content", 40),
    ])


@main.command()
@click.argument("post_id", type=int)
def post(post_id: int):
    """Show a single post."""
    data = _run(_graphql(
        f"query ($id: Int!) {{ post(id: $id) {{ {POST_FIELDS} }} }}",
        {"id": post_id},
    ))
    if data["post"] is None:
        raise click.ClickException(f"Post {post_id} not found")
    _print_post(data["post"])


@main.command()
@click.argument("title")
@click.argument("content")
@click.option("--author-id", "-a", type=int, default=1, show_default=True,
              help="User id of the author")
def create(title: str, content: str, author_id: int):
    """Create a post. Subscribers get it as a postAdded event."""
    data = _run(_graphql(
        "mutation ($title: String!, $content: String!, $authorId: Int!) {"
        f" createPost(title: $title, content: $content, authorId: $authorId) {{ {POST_FIELDS} }} }}",
        {"title": title, "content": content, "authorId": author_id},
    ))
    _print_post(data["createPost"], label="created")


@main.command()
@click.argument("post_id", type=int)
@click.option("--title", default=None, help="New title")
@click.option("--content", default=None, help="New content")
def update(post_id: int, title: Optional[str], content: Optional[str]):
    """Update a post's title and/or content."""
    if title is None and content is None:
        raise click.UsageError("Nothing to update: pass --title and/or --content")
    data = _run(_graphql(
        "mutation ($id: Int!, $title: String, $content: String) {"
        f" updatePost(id: $id, title: $title, content: $content) {{ {POST_FIELDS} }} }}",
        {"id": post_id, "title": title, "content": content},
    ))
    _print_post(data["updatePost"], label="updated")


@main.command()
@click.argument("post_id", type=int)
def delete(post_id: int):
    """Delete a post."""
    data = _run(_graphql(
        f"mutation ($id: Int!) {{ deletePost(id: $id) {{ {POST_FIELDS} }} }}",
        {"id": post_id},
    ))
    _print_post(data["deletePost"], label="deleted")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@main.command()
def users():
    """List all users."""
    data = _run(_graphql("query { users { id email name } }"))
    if not data["users"]:
        click.echo("No users yet.")
        return
    _print_table(data["users"], [("ID", "id", 6), ("NAME", "name", 24), ("EMAIL", "email", 32)])


@main.command("add-user")
@click.argument("email")
@click.argument("name")
def add_user(email: str, name: str):
    """Create a user (a post author)."""
    data = _run(_graphql(
        "mutation ($email: String!, $name: String!) {"
        " createUser(email: $email, name: $name) { id email name } }",
        {"email": email, "name": name},
    ))
    u = data["createUser"]
    click.secho(f"User #{u['id']} created: {u['name']} <{u['email']}>", fg="green")


# ---------------------------------------------------------------------------
# postpulse watch
# ---------------------------------------------------------------------------


@main.command()
@click.option("--count", "-n", type=int, default=None,
              help="Exit after this many posts (default: run until Ctrl-C)")
def watch(count: Optional[int]):
    """Subscribe to postAdded and print each new post as it arrives."""
    try:
        _run(_watch_impl(count))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(count: Optional[int]):
    import websockets

    url = _ws_url()
    async with websockets.connect(url, subprotocols=["graphql-transport-ws"]) as ws:
        await ws.send(json.dumps({"type": GQL_CONNECTION_INIT}))
        ack = json.loads(await ws.recv())
        if ack.get("type") != GQL_CONNECTION_ACK:
            raise click.ClickException(f"Handshake failed: {ack}")

        await ws.send(json.dumps({
            "id": "1",
            "type": GQL_SUBSCRIBE,
            "payload": {"query": f"subscription {{ postAdded {{ {POST_FIELDS} }} }}"},
        }))
        click.secho(f"Watching {url} for new posts (Ctrl-C to stop)...", dim=True)

        seen = 0
        async for raw in ws:
            msg = json.loads(raw)
            kind = msg.get("type")
            if kind == GQL_PING:
                await ws.send(json.dumps({"type": GQL_PONG}))
            elif kind == GQL_NEXT:
                _print_post(msg["payload"]["data"]["postAdded"], label="new")
                seen += 1
                if count is not None and seen >= count:
                    await ws.send(json.dumps({"id": "1", "type": GQL_COMPLETE}))
                    return
            elif kind == GQL_ERROR:
                raise click.ClickException(f"Subscription error: {msg.get('payload')}")
            elif kind == GQL_COMPLETE:
                click.secho("Server closed the subscription.", fg="yellow")
                return
