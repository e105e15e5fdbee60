from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from dal.user_dal import UserDAL
from main import create_app
from services.generation_gate import InFlightRegistry
from services.openai.image_generator import GraduationImageGenerator
from services.photo_orchestrator import PhotoOrchestrator
from utils.app_settings import AppSettings
from utils.database_init import AsyncDatabaseInitializer

from fakes import FakeOpenAI, make_png


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def logo_path(tmp_path: Path) -> Path:
    path = tmp_path / "assets" / "logo.png"
    path.parent.mkdir(parents=True)
    path.write_bytes(make_png(color=(0, 0, 120), size=(4, 4)))
    return path


@pytest.fixture
def settings(tmp_path: Path, logo_path: Path) -> AppSettings:
    return AppSettings(
        openai_api_key="test-key",
        database_dir=tmp_path / "database",
        content_dir=tmp_path / "generated",
        upload_dir=tmp_path / "uploads",
        logo_path=logo_path,
        openai_timeout_seconds=5,
    )


@pytest.fixture
def client(settings: AppSettings, fake_openai: FakeOpenAI):
    app = create_app(settings=settings, openai_client=fake_openai)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_initializer(tmp_path: Path) -> AsyncDatabaseInitializer:
    return AsyncDatabaseInitializer(tmp_path / "database")


@pytest.fixture
def user_dal(db_initializer: AsyncDatabaseInitializer) -> UserDAL:
    return UserDAL(db_initializer)


@pytest.fixture
def generator(fake_openai: FakeOpenAI, logo_path: Path) -> GraduationImageGenerator:
    return GraduationImageGenerator(fake_openai, logo_path, timeout=5)


@pytest.fixture
def orchestrator(user_dal: UserDAL, generator: GraduationImageGenerator, tmp_path: Path) -> PhotoOrchestrator:
    return PhotoOrchestrator(user_dal, generator, tmp_path / "generated", inflight=InFlightRegistry())


@pytest.fixture
def photo_file(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "upload.png"
    path.write_bytes(png_bytes)
    return path
