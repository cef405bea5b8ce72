"""
Unit tests for user_service: delete_user authorization and cascade ordering,
create/update email checks.

DB-free. The cascade's effect on real rows is covered in
tests/integration/test_delete_user.py.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, call, patch

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.models.user import UserRole
from backend.app.services import user_service


def _user(user_id: int, role: UserRole = UserRole.STUDENT, is_active: bool = True):
    return SimpleNamespace(
        id=user_id,
        role=role,
        is_active=is_active,
        updated_at=None,
    )


def _session_with_users(*users) -> MagicMock:
    by_id = {u.id: u for u in users}
    session = MagicMock()
    session.get.side_effect = lambda model, user_id: by_id.get(user_id)
    return session


# ═══════════════════════════════════════════════════════════════════════════
# delete_user — preconditions
# ═══════════════════════════════════════════════════════════════════════════

class TestDeleteUserPreconditions:

    def test_missing_admin_is_unauthorized(self):
        session = _session_with_users(_user(2))

        with pytest.raises(AppError) as exc_info:
            user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

        assert exc_info.value.code == ErrorCode.UNAUTHORIZED
        assert exc_info.value.http_status == 403
        session.execute.assert_not_called()

    def test_non_admin_actor_is_unauthorized(self):
        actor = _user(1, role=UserRole.TEACHER)
        target = _user(2)
        session = _session_with_users(actor, target)

        with pytest.raises(AppError) as exc_info:
            user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

        assert exc_info.value.code == ErrorCode.UNAUTHORIZED
        assert target.is_active is True

    def test_inactive_admin_is_unauthorized(self):
        session = _session_with_users(_user(1, role=UserRole.ADMIN, is_active=False), _user(2))

        with pytest.raises(AppError) as exc_info:
            user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_missing_target_raises_user_not_found(self):
        session = _session_with_users(_user(1, role=UserRole.ADMIN))

        with pytest.raises(AppError) as exc_info:
            user_service.delete_user(target_user_id=404, acting_admin_id=1, session=session)

        assert exc_info.value.code == ErrorCode.USER_NOT_FOUND
        assert exc_info.value.http_status == 404

    def test_admin_target_cannot_be_deleted(self):
        target = _user(2, role=UserRole.ADMIN)
        session = _session_with_users(_user(1, role=UserRole.ADMIN), target)

        with pytest.raises(AppError) as exc_info:
            user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

        assert exc_info.value.code == ErrorCode.CANNOT_DELETE_ADMIN
        assert exc_info.value.http_status == 422
        assert target.is_active is True
        session.execute.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# delete_user — cascade
# ═══════════════════════════════════════════════════════════════════════════

@patch("backend.app.services.user_service.membership_service.recount_member_counts")
@patch("backend.app.services.user_service.membership_service.resolve_owner_removal")
def test_delete_user_resolves_each_owned_group_then_recounts(mock_resolve, mock_recount):
    target = _user(2)
    session = _session_with_users(_user(1, role=UserRole.ADMIN), target)
    owned = [SimpleNamespace(id=10, owner_id=2), SimpleNamespace(id=11, owner_id=2)]
    session.execute.return_value.scalars.return_value.all.return_value = owned

    user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

    assert target.is_active is False
    assert target.updated_at is not None
    assert mock_resolve.call_args_list == [
        call(owned[0], 2, session),
        call(owned[1], 2, session),
    ]
    mock_recount.assert_called_once_with(session)
    # owned-groups select, membership delete, message delete, post + comment touch
    assert session.execute.call_count == 5


@patch("backend.app.services.user_service.membership_service.recount_member_counts")
@patch("backend.app.services.user_service.membership_service.resolve_owner_removal")
def test_delete_user_propagates_failure_from_succession(mock_resolve, mock_recount):
    session = _session_with_users(_user(1, role=UserRole.ADMIN), _user(2))
    session.execute.return_value.scalars.return_value.all.return_value = [SimpleNamespace(id=10)]
    mock_resolve.side_effect = RuntimeError("lock timeout")

    with pytest.raises(RuntimeError):
        user_service.delete_user(target_user_id=2, acting_admin_id=1, session=session)

    mock_recount.assert_not_called()
    session.commit.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# create / update
# ═══════════════════════════════════════════════════════════════════════════

def test_ensure_email_available_raises_duplicate_email():
    session = MagicMock()
    session.execute.return_value.first.return_value = (3,)

    with pytest.raises(AppError) as exc_info:
        user_service._ensure_email_available("taken@campus.edu", session)

    assert exc_info.value.code == ErrorCode.DUPLICATE_EMAIL
    assert exc_info.value.http_status == 409
    assert exc_info.value.field == "email"


def test_update_user_missing_raises_user_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        user_service.update_user(user_id=5, changes={"bio": "hi"}, session=session)

    assert exc_info.value.code == ErrorCode.USER_NOT_FOUND


def test_update_user_ignores_non_updatable_fields():
    ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
    user = SimpleNamespace(
        id=5,
        email="a@campus.edu",
        first_name="Ada",
        last_name="Lovelace",
        role=UserRole.STUDENT,
        profile_picture=None,
        bio=None,
        graduation_year=None,
        department=None,
        is_active=True,
        password_hash="hash",
        created_at=ts,
        updated_at=ts,
    )
    session = MagicMock()
    session.get.return_value = user

    result = user_service.update_user(
        user_id=5,
        changes={"bio": "Math", "password_hash": "x", "role": "admin"},
        session=session,
    )

    assert result["bio"] == "Math"
    assert result["role"] == "student"
    assert user.password_hash == "hash"
    assert "password_hash" not in result
