"""Unit tests for the unit_of_work transaction scope."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.services.unit_of_work import unit_of_work


def test_commits_on_success():
    session = MagicMock()

    with unit_of_work(session) as scoped:
        assert scoped is session

    session.commit.assert_called_once()
    session.rollback.assert_not_called()


def test_rolls_back_and_reraises_app_error():
    session = MagicMock()

    with pytest.raises(AppError) as exc_info:
        with unit_of_work(session):
            raise AppError(ErrorCode.NOT_A_MEMBER, "nope", 404)

    assert exc_info.value.code == ErrorCode.NOT_A_MEMBER
    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_rolls_back_on_unexpected_error():
    session = MagicMock()

    with pytest.raises(ZeroDivisionError):
        with unit_of_work(session):
            1 / 0

    session.rollback.assert_called_once()
    session.commit.assert_not_called()
