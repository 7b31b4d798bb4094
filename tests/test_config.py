import pytest

import config
import db.blob_store as blob_module
from exceptions import ConfigError


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(config, "STORAGE_URL", "https://project.storage.example")
    monkeypatch.setattr(config, "STORAGE_KEY", "service-key")
    monkeypatch.setattr(config, "BACKEND_SECRET", "backend-secret")
    monkeypatch.setattr(blob_module, "_blob_store", None)


def test_validate_config_passes_when_complete(configured):
    config.validate_config()


def test_missing_backend_secret_fails_fast(configured, monkeypatch):
    monkeypatch.setattr(config, "BACKEND_SECRET", "")

    with pytest.raises(ConfigError, match="BACKEND_SECRET"):
        config.validate_config()


def test_all_missing_values_are_listed(configured, monkeypatch):
    monkeypatch.setattr(config, "STORAGE_URL", "")
    monkeypatch.setattr(config, "STORAGE_KEY", "")

    with pytest.raises(ConfigError) as err:
        config.validate_config()
    assert "STORAGE_URL" in str(err.value)
    assert "STORAGE_KEY" in str(err.value)


def test_invalid_pool_size(configured, monkeypatch):
    monkeypatch.setattr(config, "DB_POOL_MAX", 0)

    with pytest.raises(ConfigError, match="pool"):
        config.validate_config()


def test_blob_store_requires_secret(configured, monkeypatch):
    monkeypatch.setattr(config, "BACKEND_SECRET", "")

    with pytest.raises(ConfigError):
        blob_module.get_blob_store()


def test_blob_store_is_shared(configured):
    first = blob_module.get_blob_store()
    try:
        assert blob_module.get_blob_store() is first
        assert first.base_url == "https://project.storage.example"
    finally:
        first.close()
