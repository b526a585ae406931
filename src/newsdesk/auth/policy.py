"""Authorization policies — pure role/ownership decisions.

Each mutating route declares one AccessPolicy. The decision is a pure
function of (policy, role, ownership) so it can be tested without HTTP
or a database:

    admin_only       admin → pass, anyone else → Forbidden
    author_or_admin  admin → pass
                     author → pass when no single article is targeted,
                              or when the targeted article is theirs
                     member → Forbidden

Bulk title/author routes have no single target, so any author passes
them. That mirrors the existing behaviour and is tracked as an open
product question rather than silently tightened here.
"""

import enum
from typing import Optional

from newsdesk.db.models import Role
from newsdesk.errors import Forbidden


class AccessPolicy(str, enum.Enum):
    ADMIN_ONLY = "admin_only"
    AUTHOR_OR_ADMIN = "author_or_admin"


def needs_ownership_check(policy: AccessPolicy, role: Role) -> bool:
    """True when the decision depends on who owns the targeted article."""
    return policy is AccessPolicy.AUTHOR_OR_ADMIN and role is Role.AUTHOR


def check_access(
    policy: AccessPolicy,
    role: Role,
    is_owner: Optional[bool] = None,
) -> None:
    """Raise Forbidden unless `role` satisfies `policy`.

    is_owner is None when the request does not target a single article.
    """
    if role is Role.ADMIN:
        return

    if policy is AccessPolicy.ADMIN_ONLY:
        raise Forbidden("Admin role required")

    if role is not Role.AUTHOR:
        raise Forbidden("Author or admin role required")

    if is_owner is False:
        raise Forbidden("You are not the author of this article")
