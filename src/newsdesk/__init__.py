"""Newsdesk — articles and users REST API with a live change feed.

Articles and users are stored in a relational database, mutations are
gated by JWT role checks, and every successful article change is fanned
out to connected WebSocket clients.
"""

__version__ = "0.1.0"
