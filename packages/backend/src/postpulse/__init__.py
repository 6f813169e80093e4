"""PostPulse — real-time posts over GraphQL.

A GraphQL API over posts and their authors, with live updates pushed
to subscribers through an in-process event relay.
"""

__version__ = "0.1.0"
