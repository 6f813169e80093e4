"""Pub/sub topic constants.

Learn: Centralizing topic names as constants prevents typos and
makes it easy to discover everything that can be subscribed to.
"""

# ─── Post lifecycle ──────────────────────────────────────

POST_ADDED = "post.added"
POST_UPDATED = "post.updated"
POST_DELETED = "post.deleted"
