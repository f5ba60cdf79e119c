"""ORM table definitions kept in step with what the services read and write."""
from __future__ import annotations

import pytest

from aivestor.models import User


@pytest.mark.unit
class TestUserTable:
    def test_columns(self):
        assert set(User.__table__.columns.keys()) == {
            "id",
            "email",
            "password_hash",
            "risk_tolerance",
            "risk_level",
            "risk_profile",
            "risk_answers",
            "email_verified",
            "created_at",
            "updated_at",
        }

    def test_email_is_unique(self):
        assert User.__table__.c.email.unique is True
