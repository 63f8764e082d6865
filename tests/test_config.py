import json
from pathlib import Path

import pytest

import flowpad
from flowpad.config import EditorSettings, get_editor_settings, load_config, save_config
from flowpad.paths import get_config_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("DEFAULT_TEXT", "POSITION_WIDTH", "POSITION_HEIGHT", "NODE_ID_PREFIX", "PORT", "CONFIG"):
        monkeypatch.delenv(f"FLOWPAD_{key}", raising=False)


def test_missing_file_gives_defaults(tmp_path):
    settings = get_editor_settings(tmp_path / "config.json")
    assert settings == EditorSettings()
    assert settings.default_text == "placeholder"


def test_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "config.json"
    save_config({"default_text": "todo"}, path)
    assert load_config(path) == {"default_text": "todo"}


def test_malformed_json_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(path) == {}


def test_config_file_values(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"position_width": 800, "port": 9000, "node_id_prefix": "n-"}), encoding="utf-8")

    settings = get_editor_settings(path)
    assert settings.position_width == 800.0
    assert settings.port == 9000
    assert settings.node_id_prefix == "n-"


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_text": "from file", "port": 9000}), encoding="utf-8")
    monkeypatch.setenv("FLOWPAD_DEFAULT_TEXT", "from env")
    monkeypatch.setenv("FLOWPAD_PORT", "9100")

    settings = get_editor_settings(path)
    assert settings.default_text == "from env"
    assert settings.port == 9100


def test_invalid_numbers_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("FLOWPAD_POSITION_HEIGHT", "tall")
    settings = get_editor_settings(tmp_path / "config.json")
    assert settings.position_height == 500.0


def test_config_path_env_override(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"default_text": "from custom"}), encoding="utf-8")
    monkeypatch.setenv("FLOWPAD_CONFIG", str(path))

    assert get_config_path() == path
    assert get_editor_settings().default_text == "from custom"


def test_config_path_defaults_to_project_root():
    assert get_config_path() == Path(flowpad.__file__).resolve().parent.parent / "config.json"
