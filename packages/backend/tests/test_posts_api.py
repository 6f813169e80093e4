"""GraphQL API tests — posts and users over HTTP.

Learn: Each test creates its own data through mutations and checks it via
queries. Every test runs against a fresh SQLite file (see conftest.py).

Pattern: test_<verb>_<noun>_<scenario>
"""

import pytest

from postpulse.realtime.topics import POST_ADDED, POST_DELETED, POST_UPDATED

CREATE_POST = """
mutation CreatePost($title: String!, $content: String!, $authorId: Int!) {
  createPost(title: $title, content: $content, authorId: $authorId) {
    id title content authorId
  }
}
"""

GET_POSTS = "query GetPosts { posts { id title content authorId } }"

GET_POST = "query GetPost($id: Int!) { post(id: $id) { id title content authorId } }"

UPDATE_POST = """
mutation UpdatePost($id: Int!, $title: String, $content: String) {
  updatePost(id: $id, title: $title, content: $content) { id title content authorId }
}
"""

DELETE_POST = "mutation DeletePost($id: Int!) { deletePost(id: $id) { id title } }"


@pytest.fixture
def create_post(gql, author):
    async def run(title="Hello", content="First post"):
        body = await gql(CREATE_POST, title=title, content=content, authorId=author["id"])
        assert "errors" not in body, body
        return body["data"]["createPost"]

    return run


# ═══════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_posts_empty(gql):
    body = await gql(GET_POSTS)
    assert body["data"]["posts"] == []


@pytest.mark.asyncio
async def test_get_post_missing_returns_null(gql):
    body = await gql(GET_POST, id=999)
    assert "errors" not in body
    assert body["data"]["post"] is None


@pytest.mark.asyncio
async def test_get_post_resolves_author(gql, create_post, author):
    post = await create_post()
    body = await gql(
        "query ($id: Int!) { post(id: $id) { id author { id name email } } }",
        id=post["id"],
    )
    assert body["data"]["post"]["author"] == author


# ═══════════════════════════════════════════════════════════
# Mutations
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_post_then_list_includes_it(gql, create_post, author):
    """createPost followed by posts includes the new record."""
    post = await create_post(title="Breaking", content="News")
    assert post["title"] == "Breaking"
    assert post["content"] == "News"
    assert post["authorId"] == author["id"]
    assert isinstance(post["id"], int)

    body = await gql(GET_POSTS)
    assert post in body["data"]["posts"]


@pytest.mark.asyncio
async def test_create_posts_get_distinct_ids_in_order(gql, create_post):
    first = await create_post(title="one")
    second = await create_post(title="two")
    assert first["id"] != second["id"]

    body = await gql(GET_POSTS)
    assert [p["title"] for p in body["data"]["posts"]] == ["one", "two"]


@pytest.mark.asyncio
async def test_create_post_missing_argument_is_rejected(gql):
    body = await gql(
        "mutation { createPost(title: \"no content\", authorId: 1) { id } }"
    )
    assert body["data"] is None
    assert "content" in body["errors"][0]["message"]


@pytest.mark.asyncio
async def test_update_post_partial(gql, create_post):
    post = await create_post(title="Draft", content="Body")

    body = await gql(UPDATE_POST, id=post["id"], title="Final")
    updated = body["data"]["updatePost"]
    assert updated["title"] == "Final"
    assert updated["content"] == "Body"  # untouched

    body = await gql(GET_POST, id=post["id"])
    assert body["data"]["post"]["title"] == "Final"


@pytest.mark.asyncio
async def test_update_post_missing_is_an_error(gql):
    body = await gql(UPDATE_POST, id=404, title="ghost")
    assert body["data"] is None
    assert body["errors"][0]["message"] == "Post 404 not found"


@pytest.mark.asyncio
async def test_delete_post_then_get_returns_null(gql, create_post):
    """deletePost followed by post(id) returns empty."""
    post = await create_post(title="Short-lived")

    body = await gql(DELETE_POST, id=post["id"])
    assert body["data"]["deletePost"] == {"id": post["id"], "title": "Short-lived"}

    body = await gql(GET_POST, id=post["id"])
    assert body["data"]["post"] is None

    body = await gql(GET_POSTS)
    assert body["data"]["posts"] == []


@pytest.mark.asyncio
async def test_delete_post_missing_is_an_error(gql):
    body = await gql(DELETE_POST, id=12345)
    assert body["errors"][0]["message"] == "Post 12345 not found"


# ═══════════════════════════════════════════════════════════
# Publishing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_post_publishes_exactly_once(relay, create_post):
    """An active subscriber receives exactly one postAdded event per createPost."""
    sub = relay.subscribe(POST_ADDED)

    post = await create_post(title="Live")

    assert sub.pending() == 1
    payload = await sub.__anext__()
    assert payload.id == post["id"]
    assert payload.title == "Live"
    sub.close()


@pytest.mark.asyncio
async def test_update_and_delete_publish_on_their_own_topics(relay, gql, create_post):
    added = relay.subscribe(POST_ADDED)
    updated = relay.subscribe(POST_UPDATED)
    deleted = relay.subscribe(POST_DELETED)

    post = await create_post()
    await gql(UPDATE_POST, id=post["id"], content="edited")
    await gql(DELETE_POST, id=post["id"])

    assert (added.pending(), updated.pending(), deleted.pending()) == (1, 1, 1)
    assert (await updated.__anext__()).content == "edited"
    assert (await deleted.__anext__()).id == post["id"]
    relay.close_all()


@pytest.mark.asyncio
async def test_failed_update_publishes_nothing(relay, gql):
    sub = relay.subscribe(POST_UPDATED)
    await gql(UPDATE_POST, id=1, title="nope")
    assert sub.pending() == 0
    sub.close()


# ═══════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_user_and_list(gql, author):
    assert author["email"] == "ada@example.com"
    body = await gql("{ users { id email name } }")
    assert body["data"]["users"] == [author]


@pytest.mark.asyncio
async def test_user_posts_lists_only_their_posts(gql, create_post, author):
    other = (await gql(
        'mutation { createUser(email: "bob@example.com", name: "Bob") { id } }'
    ))["data"]["createUser"]
    mine = await create_post(title="mine")
    await gql(CREATE_POST, title="theirs", content="x", authorId=other["id"])

    body = await gql(
        "query ($id: Int!) { user(id: $id) { name posts { id title } } }",
        id=author["id"],
    )
    assert body["data"]["user"]["posts"] == [{"id": mine["id"], "title": "mine"}]


@pytest.mark.asyncio
async def test_get_user_missing_returns_null(gql):
    body = await gql("query { user(id: 77) { id } }")
    assert body["data"]["user"] is None


@pytest.mark.asyncio
async def test_list_posts_resolves_every_author(gql, create_post, author):
    """Sibling author fields resolve concurrently without sharing a session."""
    for title in ("a", "b", "c", "d"):
        await create_post(title=title)

    body = await gql("{ posts { id author { name } } }")
    assert "errors" not in body, body
    assert [p["author"] for p in body["data"]["posts"]] == [{"name": "Ada"}] * 4


# ═══════════════════════════════════════════════════════════
# Store errors
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_user_duplicate_email_is_an_error(gql, author):
    body = await gql(
        'mutation { createUser(email: "ada@example.com", name: "Ada Again") { id } }'
    )
    assert body["data"] is None
    assert body["errors"]

    body = await gql("{ users { email } }")
    assert body["data"]["users"] == [{"email": "ada@example.com"}]


@pytest.mark.asyncio
async def test_create_post_unknown_author_is_an_error_and_publishes_nothing(relay, gql):
    sub = relay.subscribe(POST_ADDED)

    body = await gql(CREATE_POST, title="Orphan", content="x", authorId=999)

    assert body["data"] is None
    assert body["errors"]
    assert sub.pending() == 0
    assert (await gql(GET_POSTS))["data"]["posts"] == []
    sub.close()
