"""환경 변수 설정 테스트"""

from pathlib import Path

from src.utils import StreamerSettings
from src.utils.settings import DEFAULT_MODEL


def test_defaults_from_empty_env():
    s = StreamerSettings.from_env({})
    assert s.enabled is True
    assert s.is_configured is False
    assert s.model == DEFAULT_MODEL
    assert s.debounce_ms == 3000
    assert s.overlay_port == 8765
    assert s.viewers_path.name == "viewers.json"


def test_values_from_env(tmp_path):
    s = StreamerSettings.from_env({
        "LLM_BASE_URL": " https://api.example.com/v1/ ",
        "LLM_API_KEY": "k",
        "LLM_MODEL": "llama",
        "CODE_STREAMER_ENABLED": "false",
        "CODE_STREAMER_DEBOUNCE_MS": "5000",
        "CODE_STREAMER_STATE_PATH": str(tmp_path / "s.json"),
        "OVERLAY_PORT": "9000",
    })
    assert s.base_url == "https://api.example.com/v1"
    assert s.is_configured is True
    assert s.model == "llama"
    assert s.enabled is False
    assert s.debounce_ms == 5000
    assert s.state_path == tmp_path / "s.json"
    assert s.overlay_port == 9000


def test_debounce_floor_and_bad_numbers():
    assert StreamerSettings.from_env({"CODE_STREAMER_DEBOUNCE_MS": "500"}).debounce_ms == 3000
    assert StreamerSettings.from_env({"CODE_STREAMER_DEBOUNCE_MS": "abc"}).debounce_ms == 3000
    assert StreamerSettings.from_env({"OVERLAY_PORT": ""}).overlay_port == 8765


def test_relative_path_resolves_to_project_root():
    s = StreamerSettings.from_env({"CODE_STREAMER_VIEWERS_PATH": "custom/v.json"})
    assert s.viewers_path.is_absolute()
    assert s.viewers_path.parts[-2:] == ("custom", "v.json")


def test_key_only_is_not_configured():
    assert StreamerSettings(api_key="k").is_configured is False
    assert StreamerSettings(base_url="http://x", api_key="  ").is_configured is False
