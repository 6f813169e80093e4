"""Real-time infrastructure — in-process pub/sub feeding GraphQL subscriptions.

Learn: Events flow through two hops:
1. Services → PubSub.publish() right after the database commit
2. PubSub → Subscription handle → GraphQL subscription → WebSocket client

This decouples event producers (services) from consumers (subscriptions).
"""

from postpulse.realtime.pubsub import PubSub, Subscription, get_pubsub, pubsub

__all__ = ["PubSub", "Subscription", "get_pubsub", "pubsub"]
