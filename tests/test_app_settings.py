from pathlib import Path

import pytest

from utils.app_settings import load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in (
        "DATABASE_DIR",
        "OPENAI_API_KEY",
        "OPENAI_IMAGE_MODEL",
        "OPENAI_TIMEOUT_SECONDS",
        "CONTENT_DIR",
        "UPLOAD_DIR",
        "LOGO_PATH",
        "RESET_DATABASE_ON_STARTUP",
        "CORS_ORIGINS",
        "LOG_LEVEL",
    ):
        # setenv first so teardown restores the variable to "unset"
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # keep a developer's .env out of the test
    monkeypatch.chdir(tmp_path)


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))

    settings = load_settings()

    assert settings.database_dir == tmp_path / "db"
    assert settings.image_model == "gpt-image-1"
    assert settings.openai_timeout_seconds == 120.0
    assert settings.content_dir == Path("generated")
    assert settings.reset_database_on_startup is False
    assert settings.cors_origins == ["*"]
    assert settings.logo_path.name == "logo.png"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))
    monkeypatch.setenv("OPENAI_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("RESET_DATABASE_ON_STARTUP", "yes")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://photos.example.org")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.openai_timeout_seconds == 30.0
    assert settings.reset_database_on_startup is True
    assert settings.cors_origins == ["http://localhost:5173", "https://photos.example.org"]
    assert settings.log_level == "DEBUG"


def test_database_dir_is_required():
    with pytest.raises(RuntimeError):
        load_settings()


@pytest.mark.parametrize("value", ["soon", "-1"])
def test_invalid_timeout(monkeypatch, tmp_path, value):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))
    monkeypatch.setenv("OPENAI_TIMEOUT_SECONDS", value)

    with pytest.raises(RuntimeError):
        load_settings()


def test_dotenv_file_is_read(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text(f"DATABASE_DIR={tmp_path / 'from-dotenv'}\nOPENAI_IMAGE_MODEL=gpt-image-1-mini\n")

    settings = load_settings(env_file)

    assert settings.database_dir == tmp_path / "from-dotenv"
    assert settings.image_model == "gpt-image-1-mini"


def test_unknown_log_level_is_rejected(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(RuntimeError):
        load_settings()
