"""Real-time article feed — in-process WebSocket fan-out.

Events flow one way:
1. A route commits a mutation and gets back a BroadcastEvent
2. Broadcaster.publish serializes it once
3. ConnectionRegistry hands every open socket the same frame

Single process only: there is no cross-worker bus and no replay, so a
client that was disconnected during a publish simply misses it and can
re-read the REST API to catch up.
"""
