"""
tests/test_jwt_startup.py — JWT Secret Validation at Startup
==============================================================
The API refuses to start when JWT_SECRET is missing, blank, too short, or a
known weak default.
"""

from __future__ import annotations

import importlib
import os
from unittest.mock import patch

import pytest


class TestJWTSecretValidation:
    def _call_load(self) -> str:
        import harmonic.api.deps as deps_mod
        importlib.reload(deps_mod)
        return deps_mod.JWT_SECRET

    def test_rejects_missing_secret(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("JWT_SECRET", None)
            with pytest.raises(RuntimeError, match="JWT_SECRET environment variable is not set"):
                self._call_load()

    def test_rejects_known_weak_default(self):
        with patch.dict(os.environ, {"JWT_SECRET": "harmonic-dev-secret-change-me"}):
            with pytest.raises(RuntimeError, match="known weak default"):
                self._call_load()

    def test_rejects_short_secret(self):
        with patch.dict(os.environ, {"JWT_SECRET": "tooshort"}):
            with pytest.raises(RuntimeError, match="too short"):
                self._call_load()

    def test_accepts_strong_secret(self):
        good_secret = "b" * 64
        with patch.dict(os.environ, {"JWT_SECRET": good_secret}):
            assert self._call_load() == good_secret

    @pytest.fixture(autouse=True)
    def _restore_jwt_secret(self):
        original = os.environ.get("JWT_SECRET")
        yield
        if original is not None:
            os.environ["JWT_SECRET"] = original
        import harmonic.api.deps as deps_mod
        importlib.reload(deps_mod)


class TestClaims:
    @pytest.mark.parametrize("claims,expected", [
        ({"sub": "a", "is_admin": True}, True),
        ({"sub": "a", "is_admin": "yes"}, False),
        ({"sub": "a", "role": "moderator"}, True),
        ({"sub": "a", "role": "authenticated"}, False),
        ({"sub": "a", "app_metadata": {"role": "admin"}}, True),
        ({"sub": "a", "app_metadata": None}, False),
        ({"sub": "a"}, False),
    ])
    def test_is_admin(self, claims, expected):
        from harmonic.api.deps import is_admin

        assert is_admin(claims) is expected

    def test_audience_ignored_unless_configured(self):
        import jwt

        from harmonic.api import deps

        token = jwt.encode({"sub": "a", "aud": "authenticated"}, deps.JWT_SECRET, algorithm="HS256")
        assert deps.decode_token(token)["sub"] == "a"

    def test_audience_enforced_when_configured(self):
        import jwt
        from jwt.exceptions import InvalidTokenError

        from harmonic.api import deps

        with patch.object(deps, "JWT_AUDIENCE", "authenticated"):
            good = jwt.encode({"sub": "a", "aud": "authenticated"}, deps.JWT_SECRET, algorithm="HS256")
            bad = jwt.encode({"sub": "a", "aud": "other"}, deps.JWT_SECRET, algorithm="HS256")
            assert deps.decode_token(good)["sub"] == "a"
            with pytest.raises(InvalidTokenError):
                deps.decode_token(bad)
