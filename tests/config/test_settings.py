"""
Tests for inventauri_config.

Verifies:
- The packaged defaults load into complete, frozen settings
- Partial files fall back to defaults per key
- Unknown keys and invalid values are rejected
- INVENTAURI_DATABASE_URL and INVENTAURI_LOG_LEVEL override the file
- A settings checksum identifies the effective configuration
"""

from dataclasses import FrozenInstanceError

import pytest
import yaml

from inventauri.db.engine import (
    create_tables,
    init_engine_from_settings,
    reset_engine,
    session_scope,
)
from inventauri.services import CatalogService, SaleRecorder
from inventauri_config import DEFAULT_SETTINGS_PATH, get_settings
from inventauri_config.loader import ENV_DATABASE_URL, ENV_LOG_LEVEL, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(ENV_DATABASE_URL, raising=False)
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)


def _write(tmp_path, data) -> str:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestDefaults:
    def test_packaged_defaults(self):
        settings = get_settings()

        assert DEFAULT_SETTINGS_PATH.exists()
        assert settings.database.url == "sqlite:///inventauri.db"
        assert settings.database.pool_size == 20
        assert settings.logging.level == "INFO"
        assert settings.sales.max_lines_per_sale == 500
        assert settings.sales.negative_quantity_policy == "reject"
        assert len(settings.checksum) == 64

    def test_settings_are_frozen(self):
        settings = get_settings()
        with pytest.raises(FrozenInstanceError):
            settings.sales.max_lines_per_sale = 1  # type: ignore[misc]

    def test_load_is_logged(self, captured_logs):
        settings = get_settings()

        loaded = [r for r in captured_logs() if r["message"] == "settings_loaded"]
        assert loaded[0]["checksum"] == settings.checksum


class TestFileValues:
    def test_partial_file(self, tmp_path):
        settings = get_settings(_write(tmp_path, {"sales": {"negative_quantity_policy": "magnitude"}}))

        assert settings.sales.negative_quantity_policy == "magnitude"
        assert settings.sales.max_lines_per_sale == 500
        assert settings.database.echo is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert get_settings(path).sales.max_lines_per_sale == 500

    def test_checksum_changes_with_content(self, tmp_path):
        a = get_settings(_write(tmp_path, {"sales": {"max_lines_per_sale": 10}}))
        b = get_settings(_write(tmp_path, {"sales": {"max_lines_per_sale": 20}}))

        assert a.checksum != b.checksum

    @pytest.mark.parametrize(
        "data",
        [
            {"sales": {"negative_quantity_policy": "coerce"}},
            {"sales": {"max_lines_per_sale": 0}},
            {"sales": {"max_lines_per_sale": "many"}},
            {"sales": {"max_lines": 10}},
            {"database": {"url": ""}},
            {"database": {"echo": "yes"}},
            {"logging": {"level": "LOUD"}},
            {"metrics": {"enabled": True}},
            {"sales": ["reject"]},
        ],
    )
    def test_invalid_values(self, tmp_path, data):
        with pytest.raises(ValueError):
            get_settings(_write(tmp_path, data))

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            get_settings(_write(tmp_path, ["database"]))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_settings(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("sales: [unclosed")

        with pytest.raises(yaml.YAMLError):
            get_settings(path)


class TestEnvironmentOverrides:
    def test_database_url_and_log_level(self, monkeypatch):
        monkeypatch.setenv(ENV_DATABASE_URL, "postgresql://u:p@db/inventauri")
        monkeypatch.setenv(ENV_LOG_LEVEL, "debug")

        settings = get_settings()

        assert settings.database.url == "postgresql://u:p@db/inventauri"
        assert settings.logging.level == "DEBUG"

    def test_explicit_environ(self):
        settings = load_settings(
            DEFAULT_SETTINGS_PATH,
            environ={ENV_DATABASE_URL: "sqlite:///:memory:"},
        )

        assert settings.database.url == "sqlite:///:memory:"

    def test_invalid_override_rejected(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "chatty")

        with pytest.raises(ValueError):
            get_settings()


class TestWiring:
    def test_settings_drive_engine_and_recorder(self, tmp_path):
        settings = get_settings(
            _write(tmp_path, {"database": {"url": f"sqlite:///{tmp_path / 'wired.db'}"}})
        )
        try:
            init_engine_from_settings(settings.database)
            create_tables()
            with session_scope() as session:
                CatalogService(session).create_item("tenant-w", "Scone", item_id="w-1")

            record = SaleRecorder.from_settings(settings.sales).record_sale(
                "tenant-w", {"items": [{"itemId": "w-1", "qty": 2, "unitPriceCents": 300}]}
            )

            assert record.tenant_id == "tenant-w"
        finally:
            reset_engine()
