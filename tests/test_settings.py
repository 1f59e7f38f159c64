"""Tests for the process-wide fixture settings."""

import pytest
from pydantic import ValidationError

from sqlfixture.config import FixtureSettings


class TestFixtureSettings:
    def test_defaults(self):
        settings = FixtureSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.data_dir == "testData"
        assert settings.default_dataset == "fixture.xml"
        assert settings.config_file == "sqlfixture.properties"
        assert settings.ddl_file == "create_db_content.ddl"
        assert settings.dump_dataset is False
        assert settings.echo_sql is False
        assert settings.lock_timeout == 5.0
        assert settings.enforce_foreign_keys is True

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SQLFIXTURE_DATA_DIR", "fixtures")
        monkeypatch.setenv("SQLFIXTURE_DUMP_DATASET", "true")
        monkeypatch.setenv("SQLFIXTURE_LOCK_TIMEOUT", "0.5")
        monkeypatch.setenv("SQLFIXTURE_ENFORCE_FOREIGN_KEYS", "false")

        settings = FixtureSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.data_dir == "fixtures"
        assert settings.dump_dataset is True
        assert settings.lock_timeout == 0.5
        assert settings.enforce_foreign_keys is False

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SQLFIXTURE_DEFAULT_DATASET=base.xml\n", encoding="utf-8")

        settings = FixtureSettings(_env_file=env_file)  # type: ignore[call-arg]
        assert settings.default_dataset == "base.xml"

    def test_negative_lock_timeout_rejected(self):
        with pytest.raises(ValidationError):
            FixtureSettings(lock_timeout=-1, _env_file=None)  # type: ignore[call-arg]

    def test_unrelated_env_ignored(self, monkeypatch):
        monkeypatch.setenv("SQLFIXTURE_UNKNOWN", "x")
        settings = FixtureSettings(_env_file=None)  # type: ignore[call-arg]
        assert not hasattr(settings, "unknown")
