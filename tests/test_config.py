import json
from pathlib import Path

import pytest

from adstory.errors import ProviderUnavailable


def test_no_key_anywhere_raises(isolated_config):
    cfg = isolated_config.Config.load()
    with pytest.raises(ProviderUnavailable):
        cfg.resolve_api_key()


def test_env_key_is_the_default(isolated_config, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    assert isolated_config.Config.load().resolve_api_key() == "env-key"


def test_stored_key_wins_over_env(isolated_config, monkeypatch):
    monkeypatch.setenv("ADSTORY_GEMINI_API_KEY", "env-key")
    cfg = isolated_config.Config.load()
    cfg.stored_api_key = "saved-key"
    cfg.save()

    reloaded = isolated_config.Config.load()
    assert reloaded.default_api_key == "env-key"
    assert reloaded.resolve_api_key() == "saved-key"


def test_clearing_stored_key_falls_back_to_env(isolated_config, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    cfg = isolated_config.Config.load()
    cfg.stored_api_key = "saved-key"
    cfg.save()
    cfg.stored_api_key = ""
    cfg.save()

    data = json.loads(isolated_config.CONFIG_FILE.read_text())
    assert "gemini_api_key" not in data
    assert isolated_config.Config.load().resolve_api_key() == "env-key"


def test_settings_round_trip(isolated_config):
    cfg = isolated_config.Config.load()
    cfg.output_dir = Path("renders")
    cfg.voice = "Kore"
    cfg.aspect_ratio = "9:16"
    cfg.video_max_polls = 12
    cfg.save()

    loaded = isolated_config.Config.load()
    assert loaded.output_dir == Path("renders")
    assert loaded.voice == "Kore"
    assert loaded.aspect_ratio == "9:16"
    assert loaded.video_max_polls == 12


def test_corrupt_config_file_is_ignored(isolated_config):
    isolated_config.CONFIG_DIR.mkdir(parents=True)
    isolated_config.CONFIG_FILE.write_text("{not json")
    cfg = isolated_config.Config.load()
    assert cfg.stored_api_key == ""
    assert cfg.voice == "Zephyr"


def test_null_key_in_config_file(isolated_config, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    isolated_config.CONFIG_DIR.mkdir(parents=True)
    isolated_config.CONFIG_FILE.write_text(json.dumps({"gemini_api_key": None, "voice": "Puck"}))

    cfg = isolated_config.Config.load()
    assert cfg.stored_api_key == ""
    assert cfg.voice == "Puck"
    assert cfg.resolve_api_key() == "env-key"


def test_config_file_that_is_not_an_object(isolated_config):
    isolated_config.CONFIG_DIR.mkdir(parents=True)
    isolated_config.CONFIG_FILE.write_text('["gemini_api_key"]')
    cfg = isolated_config.Config.load()
    assert cfg.stored_api_key == ""
    assert cfg.output_dir == Path("output")
