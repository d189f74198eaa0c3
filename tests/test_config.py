"""
tests/test_config.py — YAML + Environment Configuration
=========================================================
"""

from __future__ import annotations

import pytest

from harmonic.config import QUOTA_LIMIT_ENV, HarmonicConfig, load_config, resolve_quota_limit


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_minimal_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv(QUOTA_LIMIT_ENV, raising=False)
        cfg = load_config(_write(tmp_path, "community_name: Harmonic\ndashboard_port: 8000\n"))
        assert cfg == HarmonicConfig(community_name="Harmonic", dashboard_port=8000)
        assert cfg.request_quota_limit == 3

    def test_yaml_quota_limit(self, tmp_path, monkeypatch):
        monkeypatch.delenv(QUOTA_LIMIT_ENV, raising=False)
        cfg = load_config(_write(
            tmp_path, "community_name: H\ndashboard_port: 9000\nrequest_quota_limit: 5\n",
        ))
        policy = cfg.quota_policy()
        assert (policy.limit, policy.window) == (5, "last_30_days")

    def test_window_is_always_thirty_days(self, tmp_path, monkeypatch):
        monkeypatch.delenv(QUOTA_LIMIT_ENV, raising=False)
        cfg = load_config(_write(
            tmp_path, "community_name: H\ndashboard_port: 9000\nquota_window_days: 14\n",
        ))
        assert not hasattr(cfg, "quota_window_days")
        policy = cfg.quota_policy()
        assert policy.window_days == 30
        assert policy.window == "last_30_days"
        assert policy.snapshot(1).to_dict()["window"] == "last_30_days"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv(QUOTA_LIMIT_ENV, "10")
        cfg = load_config(_write(
            tmp_path, "community_name: H\ndashboard_port: 9000\nrequest_quota_limit: 5\n",
        ))
        assert cfg.request_quota_limit == 10

    def test_bad_env_value_falls_back_to_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv(QUOTA_LIMIT_ENV, "-5")
        cfg = load_config(_write(tmp_path, "community_name: H\ndashboard_port: 9000\n"))
        assert cfg.request_quota_limit == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "dashboard_port: 8000\n"))


class TestResolveQuotaLimit:
    @pytest.mark.parametrize("env,yaml_value,expected", [
        ({}, None, 3),
        ({}, 6, 6),
        ({}, "abc", 3),
        ({QUOTA_LIMIT_ENV: "4.7"}, 6, 4),
        ({QUOTA_LIMIT_ENV: "   "}, 6, 6),
        ({QUOTA_LIMIT_ENV: "0"}, 6, 3),
    ])
    def test_precedence(self, env, yaml_value, expected):
        assert resolve_quota_limit(yaml_value, env=env) == expected
