"""Access policy decisions — pure functions, no HTTP, no database."""

import pytest

from newsdesk.auth.policy import AccessPolicy, check_access, needs_ownership_check
from newsdesk.db.models import Role
from newsdesk.errors import Forbidden


# ═══════════════════════════════════════════════════════════
# AdminOnly
# ═══════════════════════════════════════════════════════════


def test_admin_only_lets_admin_through():
    check_access(AccessPolicy.ADMIN_ONLY, Role.ADMIN)


@pytest.mark.parametrize("role", [Role.AUTHOR, Role.MEMBER])
def test_admin_only_rejects_everyone_else(role):
    with pytest.raises(Forbidden):
        check_access(AccessPolicy.ADMIN_ONLY, role)


def test_admin_only_ignores_ownership():
    with pytest.raises(Forbidden):
        check_access(AccessPolicy.ADMIN_ONLY, Role.AUTHOR, is_owner=True)


# ═══════════════════════════════════════════════════════════
# AuthorOrAdmin
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize("is_owner", [None, True, False])
def test_admin_passes_regardless_of_ownership(is_owner):
    check_access(AccessPolicy.AUTHOR_OR_ADMIN, Role.ADMIN, is_owner)


def test_author_passes_without_target():
    check_access(AccessPolicy.AUTHOR_OR_ADMIN, Role.AUTHOR, None)


def test_author_passes_on_own_article():
    check_access(AccessPolicy.AUTHOR_OR_ADMIN, Role.AUTHOR, True)


def test_author_blocked_on_foreign_article():
    with pytest.raises(Forbidden, match="not the author"):
        check_access(AccessPolicy.AUTHOR_OR_ADMIN, Role.AUTHOR, False)


def test_member_blocked_even_as_owner():
    with pytest.raises(Forbidden):
        check_access(AccessPolicy.AUTHOR_OR_ADMIN, Role.MEMBER, True)


# ═══════════════════════════════════════════════════════════
# When a store read is needed
# ═══════════════════════════════════════════════════════════


def test_only_authors_need_ownership_lookup():
    assert needs_ownership_check(AccessPolicy.AUTHOR_OR_ADMIN, Role.AUTHOR)
    assert not needs_ownership_check(AccessPolicy.AUTHOR_OR_ADMIN, Role.ADMIN)
    assert not needs_ownership_check(AccessPolicy.AUTHOR_OR_ADMIN, Role.MEMBER)
    assert not needs_ownership_check(AccessPolicy.ADMIN_ONLY, Role.AUTHOR)
