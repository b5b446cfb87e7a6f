from pathlib import Path

import pytest

from papertrail.config import Settings, save_config


@pytest.fixture(autouse=True)
def fresh_settings():
    Settings.reset()
    yield
    Settings.reset()


def test_defaults_without_config_file(tmp_path, monkeypatch):
    for name in ("PAPERTRAIL_ENV", "PORT", "PAPERTRAIL_DATA_DIR", "OLLAMA_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.load(tmp_path)

    assert settings.port == 3002
    assert settings.data_dir == tmp_path / "data"
    assert settings.is_production is False
    assert settings.max_upload_bytes == 50 * 1024 * 1024
    assert (tmp_path / ".metadata").is_dir()


def test_yaml_values_are_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("OLLAMA_MODEL", raising=False)
    metadata = tmp_path / ".metadata"
    metadata.mkdir()
    (metadata / "config.yaml").write_text(
        "port: 4000\n"
        "data_dir: /srv/papers\n"
        "llm:\n  model: mistral\n  enabled: false\n"
        "arxiv:\n  default_topics: [graph theory]\n"
    )

    settings = Settings.load(tmp_path)

    assert settings.port == 4000
    assert settings.data_dir == Path("/srv/papers")
    assert settings.llm.model == "mistral"
    assert settings.llm.enabled is False
    assert settings.arxiv.default_topics == ["graph theory"]


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    metadata = tmp_path / ".metadata"
    metadata.mkdir()
    (metadata / "config.yaml").write_text("port: 4000\nllm:\n  base_url: http://yaml:11434\n")
    monkeypatch.setenv("PORT", "5000")
    monkeypatch.setenv("OLLAMA_URL", "http://env:11434")
    monkeypatch.setenv("PAPERTRAIL_ENV", "production")

    settings = Settings.load(tmp_path)

    assert settings.port == 5000
    assert settings.llm.base_url == "http://env:11434"
    assert settings.is_production is True


def test_example_files_are_copied(tmp_path):
    example = tmp_path / ".metadata.example"
    example.mkdir()
    (example / "config.yaml").write_text("port: 4100\n")

    Settings.load(tmp_path)

    assert (tmp_path / ".metadata" / "config.yaml").read_text() == "port: 4100\n"


def test_invalid_yaml_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    metadata = tmp_path / ".metadata"
    metadata.mkdir()
    (metadata / "config.yaml").write_text("port: [unclosed\n")

    assert Settings.load(tmp_path).port == 3002


def test_load_returns_singleton(tmp_path):
    first = Settings.load(tmp_path)
    assert Settings.load() is first
    assert Settings() is first


def test_update_rejects_unknown_fields(tmp_path):
    settings = Settings.load(tmp_path)
    settings.update(port=9999)
    assert settings.port == 9999
    with pytest.raises(AttributeError):
        settings.update(nonsense=1)


def test_save_config_round_trip(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    settings = Settings.load(tmp_path)
    settings.update(port=4321)

    save_config(tmp_path / ".metadata" / "config.yaml", settings)
    reloaded = Settings.reload(tmp_path)

    assert reloaded is not settings
    assert reloaded.port == 4321
