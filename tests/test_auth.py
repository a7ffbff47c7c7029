"""Tests for admin API authentication."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from mortgage_assistant.auth import require_admin_token


# ── Fixture: mock settings for auth tests ──────────────────────────

class FakeSettings:
    def __init__(self, admin_api_key="", debug=False):
        self.admin_api_key = admin_api_key
        self.debug = debug


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestRequireAdminToken:
    """Test the require_admin_token dependency directly."""

    async def test_rejects_no_token_when_key_set(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="secret"))
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_token(credentials=None)
        assert exc_info.value.status_code == 401

    async def test_rejects_wrong_token(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="secret"))
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_token(credentials=_bearer("wrong"))
        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    async def test_allows_correct_token(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="secret"))
        # Should not raise
        await require_admin_token(credentials=_bearer("secret"))

    async def test_allows_no_key_debug_mode(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="", debug=True))
        await require_admin_token(credentials=None)

    async def test_rejects_no_key_production(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="", debug=False))
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_token(credentials=None)
        assert exc_info.value.status_code == 403

    async def test_no_key_production_ignores_token(self, monkeypatch):
        monkeypatch.setattr("mortgage_assistant.auth.settings", FakeSettings(admin_api_key="", debug=False))
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_token(credentials=_bearer("anything"))
        assert exc_info.value.status_code == 403
