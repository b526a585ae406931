"""Authentication and authorization.

Two stages guard every mutating route:
1. Authentication — Bearer JWT → CurrentIdentity (401 on failure)
2. Authorization — a per-route AccessPolicy over the identity's role,
   plus an ownership check for author-scoped article edits (403/404)
"""
