"""GraphQL API — Strawberry schema mounted on FastAPI.

Provides:
- Query resolvers for posts and users
- Mutation resolvers that publish live updates after each write
- WebSocket subscriptions (graphql-transport-ws and legacy graphql-ws)
"""

from postpulse.graphql.schema import get_graphql_router, schema

__all__ = ["get_graphql_router", "schema"]
