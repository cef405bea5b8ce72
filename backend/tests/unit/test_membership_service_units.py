"""
Unit tests for membership_service: succession policy, join/leave error paths,
and member_count maintenance.

These tests run DB-free with mocked session/query behavior. The ordering and
locking of the real queries is covered by the integration suite.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.services import membership_service


def _result(first=None):
    """A mocked Result whose .scalars().first() returns `first`."""
    result = MagicMock()
    result.scalars.return_value.first.return_value = first
    return result


def _group(group_id: int = 1, owner_id: int = 10, member_count: int = 3):
    return SimpleNamespace(id=group_id, owner_id=owner_id, member_count=member_count, updated_at=None)


# ═══════════════════════════════════════════════════════════════════════════
# resolve_owner_removal
# ═══════════════════════════════════════════════════════════════════════════

class TestResolveOwnerRemoval:

    def test_admin_member_becomes_owner(self):
        session = MagicMock()
        group = _group(owner_id=10)
        admin = SimpleNamespace(id=5, user_id=20, is_admin=True)
        session.execute.side_effect = [_result(admin)]

        successor = membership_service.resolve_owner_removal(group, 10, session)

        assert successor is admin
        assert group.owner_id == 20
        assert group.updated_at is not None
        # The admin query matched; the fallback query never ran.
        assert session.execute.call_count == 1
        session.delete.assert_not_called()

    def test_regular_member_is_promoted_when_no_admin_left(self):
        session = MagicMock()
        group = _group(owner_id=10)
        member = SimpleNamespace(id=7, user_id=30, is_admin=False)
        session.execute.side_effect = [_result(None), _result(member)]

        successor = membership_service.resolve_owner_removal(group, 10, session)

        assert successor is member
        assert member.is_admin is True
        assert group.owner_id == 30
        assert session.execute.call_count == 2

    def test_group_is_dissolved_when_nobody_remains(self):
        session = MagicMock()
        group = _group(owner_id=10, member_count=1)
        session.execute.side_effect = [_result(None), _result(None), MagicMock()]

        successor = membership_service.resolve_owner_removal(group, 10, session)

        assert successor is None
        session.delete.assert_called_once_with(group)
        # owner_id is not rewritten for a deleted group
        assert group.owner_id == 10

    def test_existing_admin_is_not_touched(self):
        session = MagicMock()
        group = _group(owner_id=10)
        admin = SimpleNamespace(id=5, user_id=20, is_admin=True)
        session.execute.side_effect = [_result(admin)]

        membership_service.resolve_owner_removal(group, 10, session)

        assert admin.is_admin is True


# ═══════════════════════════════════════════════════════════════════════════
# join_group
# ═══════════════════════════════════════════════════════════════════════════

class TestJoinGroup:

    def test_missing_user_raises_user_not_found(self):
        session = MagicMock()
        session.get.return_value = None

        with pytest.raises(AppError) as exc_info:
            membership_service.join_group(group_id=1, user_id=99, session=session)

        assert exc_info.value.code == ErrorCode.USER_NOT_FOUND
        assert exc_info.value.http_status == 404
        session.add.assert_not_called()

    def test_missing_group_raises_group_not_found(self):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=2, is_active=True)
        session.execute.return_value.scalar_one_or_none.return_value = None

        with pytest.raises(AppError) as exc_info:
            membership_service.join_group(group_id=404, user_id=2, session=session)

        assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND
        assert exc_info.value.http_status == 404

    @patch("backend.app.services.membership_service._find_membership")
    @patch("backend.app.services.membership_service._get_group_or_404")
    def test_duplicate_join_raises_already_member(self, mock_get_group, mock_find):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=2)
        mock_get_group.return_value = _group()
        mock_find.return_value = SimpleNamespace(id=3, user_id=2)

        with pytest.raises(AppError) as exc_info:
            membership_service.join_group(group_id=1, user_id=2, session=session)

        assert exc_info.value.code == ErrorCode.ALREADY_MEMBER
        assert exc_info.value.http_status == 409
        session.add.assert_not_called()

    @patch("backend.app.services.membership_service.add_membership")
    @patch("backend.app.services.membership_service._find_membership")
    @patch("backend.app.services.membership_service._get_group_or_404")
    def test_new_member_joins_as_non_admin(self, mock_get_group, mock_find, mock_add):
        session = MagicMock()
        group = _group()
        session.get.return_value = SimpleNamespace(id=2)
        mock_get_group.return_value = group
        mock_find.return_value = None
        mock_add.return_value = SimpleNamespace(
            id=8, group_id=1, user_id=2, is_admin=False, joined_at=None,
        )

        result = membership_service.join_group(group_id=1, user_id=2, session=session)

        mock_add.assert_called_once_with(group, 2, session)
        assert result == {
            "id": 8,
            "group_id": 1,
            "user_id": 2,
            "is_admin": False,
            "joined_at": None,
        }


# ═══════════════════════════════════════════════════════════════════════════
# leave_group
# ═══════════════════════════════════════════════════════════════════════════

@patch("backend.app.services.membership_service.remove_membership")
@patch("backend.app.services.membership_service.resolve_owner_removal")
@patch("backend.app.services.membership_service._find_membership")
@patch("backend.app.services.membership_service._get_group_or_404")
class TestLeaveGroup:

    def test_non_member_raises_not_a_member(self, mock_get_group, mock_find, mock_resolve, mock_remove):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=2)
        mock_get_group.return_value = _group()
        mock_find.return_value = None

        with pytest.raises(AppError) as exc_info:
            membership_service.leave_group(group_id=1, user_id=2, session=session)

        assert exc_info.value.code == ErrorCode.NOT_A_MEMBER
        assert exc_info.value.http_status == 404
        mock_resolve.assert_not_called()
        mock_remove.assert_not_called()

    def test_regular_member_leaves_without_succession(self, mock_get_group, mock_find, mock_resolve, mock_remove):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=2)
        group = _group(owner_id=10)
        membership = SimpleNamespace(id=4, user_id=2)
        mock_get_group.return_value = group
        mock_find.return_value = membership

        membership_service.leave_group(group_id=1, user_id=2, session=session)

        mock_resolve.assert_not_called()
        mock_remove.assert_called_once_with(group, membership, session)

    def test_owner_leaving_hands_over_then_leaves(self, mock_get_group, mock_find, mock_resolve, mock_remove):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=10)
        group = _group(owner_id=10)
        membership = SimpleNamespace(id=1, user_id=10)
        mock_get_group.return_value = group
        mock_find.return_value = membership
        mock_resolve.return_value = SimpleNamespace(id=2, user_id=20)

        membership_service.leave_group(group_id=1, user_id=10, session=session)

        mock_resolve.assert_called_once_with(group, 10, session)
        mock_remove.assert_called_once_with(group, membership, session)

    def test_last_owner_leaving_skips_membership_delete(self, mock_get_group, mock_find, mock_resolve, mock_remove):
        session = MagicMock()
        session.get.return_value = SimpleNamespace(id=10)
        mock_get_group.return_value = _group(owner_id=10, member_count=1)
        mock_find.return_value = SimpleNamespace(id=1, user_id=10)
        mock_resolve.return_value = None  # group was dissolved

        membership_service.leave_group(group_id=1, user_id=10, session=session)

        mock_remove.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# member_count maintenance
# ═══════════════════════════════════════════════════════════════════════════

def test_sync_member_count_writes_live_count():
    session = MagicMock()
    session.execute.return_value.scalar_one.return_value = 4
    group = _group(member_count=7)

    count = membership_service.sync_member_count(group, session)

    assert count == 4
    assert group.member_count == 4
    assert group.updated_at is not None


@patch("backend.app.services.membership_service.sync_member_count")
def test_add_membership_recounts(mock_sync):
    session = MagicMock()
    group = _group()

    membership = membership_service.add_membership(group, 5, session, is_admin=True)

    assert membership.user_id == 5
    assert membership.group_id == group.id
    assert membership.is_admin is True
    session.add.assert_called_once_with(membership)
    mock_sync.assert_called_once_with(group, session)


@patch("backend.app.services.membership_service.sync_member_count")
def test_remove_membership_recounts(mock_sync):
    session = MagicMock()
    group = _group()
    membership = SimpleNamespace(id=3)

    membership_service.remove_membership(group, membership, session)

    session.delete.assert_called_once_with(membership)
    mock_sync.assert_called_once_with(group, session)
