import logging
from pathlib import Path

import pytest

import config_loader
from config_loader import Settings, delete_settings, load_settings, save_settings
from models import DataSourceType


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(config_loader, "_app_dir", lambda: tmp_path)
    for name in (config_loader.ENV_SOURCE, config_loader.ENV_EXPORT_DIR, config_loader.ENV_LOG_LEVEL):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_defaults_without_file_or_env():
    assert load_settings() == Settings()


def test_save_and_load(isolated_settings):
    settings = Settings(default_source=DataSourceType.MDPI, export_dir=Path("out"), log_level="DEBUG")
    save_settings(settings)
    assert (isolated_settings / config_loader.SETTINGS_FILENAME).exists()
    assert load_settings() == settings

    delete_settings()
    assert load_settings() == Settings()


def test_env_overrides_file(monkeypatch, tmp_path):
    save_settings(Settings(default_source=DataSourceType.MDPI))
    monkeypatch.setenv(config_loader.ENV_SOURCE, "pubmed")
    monkeypatch.setenv(config_loader.ENV_EXPORT_DIR, str(tmp_path / "exports"))
    monkeypatch.setenv(config_loader.ENV_LOG_LEVEL, "debug")

    settings = load_settings()
    assert settings.default_source is DataSourceType.PUBMED
    assert settings.export_dir == tmp_path / "exports"
    assert settings.log_level == "DEBUG"


def test_invalid_json_falls_back_to_defaults(isolated_settings, caplog):
    (isolated_settings / config_loader.SETTINGS_FILENAME).write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="config_loader"):
        assert load_settings() == Settings()
    assert "not valid JSON" in caplog.text


def test_unknown_source_is_ignored(monkeypatch, caplog):
    monkeypatch.setenv(config_loader.ENV_SOURCE, "scopus")
    with caplog.at_level(logging.WARNING, logger="config_loader"):
        assert load_settings().default_source is DataSourceType.EUROPE_PMC
    assert "scopus" in caplog.text


def test_delete_without_file_is_a_no_op():
    delete_settings()


def test_relative_export_dir_resolves_next_to_the_app(isolated_settings, tmp_path_factory, monkeypatch):
    monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
    resolved = config_loader.resolve_export_dir(Path("data"))
    assert resolved == isolated_settings / "data"
    assert resolved.is_dir()


def test_absolute_export_dir_is_kept(tmp_path):
    target = tmp_path / "abs" / "exports"
    assert config_loader.resolve_export_dir(target) == target
    assert target.is_dir()
