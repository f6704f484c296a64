"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from papernote.config.settings import (
    GEMINI_BASE_URL,
    OPENROUTER_BASE_URL,
    DeviceConfig,
    RecognitionConfig,
    Settings,
    load_settings,
)

KEY_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENROUTER_API_KEY",
    "GEMINI_API_KEY",
    "VISION_MODEL",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test in an empty directory with no provider keys set."""
    monkeypatch.chdir(tmp_path)
    for name in KEY_VARS:
        # setenv first so the original value is restored afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.device.camera_dir == "/sdcard/DCIM/Camera"
        assert settings.device.list_limit == 5
        assert settings.watch.poll_interval == 2.0
        assert settings.recognition.provider == "openai"
        assert settings.recognition.max_retries == 3
        assert settings.delivery.mode == "tmux"
        assert settings.delivery.tmux_socket == "paper-claude"
        assert settings.notes.path == "notes.md"

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeviceConfig(wireless_port=0)
        with pytest.raises(ValidationError):
            RecognitionConfig(provider="gemini-native")
        with pytest.raises(ValidationError):
            RecognitionConfig(max_retries=-1)

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.recognition.model == "gpt-4o"

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "papernote.yaml"
        config.write_text(
            "device:\n"
            "  camera_dir: /sdcard/Pictures\n"
            "watch:\n"
            "  poll_interval: 5\n"
            "delivery:\n"
            "  mode: claude-cli\n"
            "  skip_permissions: false\n"
        )
        settings = load_settings(config)
        assert settings.device.camera_dir == "/sdcard/Pictures"
        assert settings.watch.poll_interval == 5.0
        assert settings.delivery.mode == "claude-cli"
        assert settings.delivery.skip_permissions is False

    def test_empty_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "papernote.yaml"
        config.write_text("")
        assert load_settings(config).notes.path == "notes.md"


class TestEnvOverrides:
    def test_openai_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = load_settings()
        assert settings.recognition_credentials() == ("sk-test", None)

    def test_openrouter_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("GEMINI_API_KEY", "gm-test")
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-test")
        settings = load_settings()
        assert settings.recognition_credentials() == ("or-test", OPENROUTER_BASE_URL)

    def test_gemini_base_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "gm-test")
        settings = load_settings()
        assert settings.recognition_credentials() == ("gm-test", GEMINI_BASE_URL)

    def test_explicit_base_url_kept(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-test")
        config = tmp_path / "papernote.yaml"
        config.write_text("recognition:\n  base_url: http://localhost:8000/v1\n")
        settings = load_settings(config)
        assert settings.recognition_credentials() == ("or-test", "http://localhost:8000/v1")

    def test_only_anthropic_key_selects_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")
        settings = load_settings()
        assert settings.recognition.provider == "anthropic"
        assert settings.recognition.model.startswith("claude-")
        assert settings.recognition_credentials() == ("ak-test", None)

    def test_vision_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("VISION_MODEL", "gpt-4o-mini")
        assert load_settings().recognition.model == "gpt-4o-mini"

    def test_yaml_model_beats_vision_model(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("VISION_MODEL", "gpt-4o-mini")
        config = tmp_path / "papernote.yaml"
        config.write_text("recognition:\n  model: gpt-4.1\n")
        assert load_settings(config).recognition.model == "gpt-4.1"

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".env").write_text("# keys\nOPENAI_API_KEY=sk-from-dotenv\n")
        settings = load_settings()
        assert settings.recognition_credentials() == ("sk-from-dotenv", None)
