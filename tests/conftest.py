"""pytest 공용 fixture.

모든 테스트는 tmp_path 아래의 파일 SQLite DB와 입력/출력 디렉토리를 사용하여 격리된다.
(in-memory DB는 워커 감시 스레드와 커넥션을 공유하게 되므로 쓰지 않는다)
- test_settings: 임시 경로를 가리키는 Settings
- store / dispatcher / service: 실제 워커 프로세스(spawn)를 띄우는 서비스 조립
- client: get_task_service를 테스트용 서비스로 오버라이드한 TestClient
- make_image: 디스크에 테스트 이미지를 만드는 팩토리
"""

import sys
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from core.config import Settings
from core.dependencies import get_task_service
from main import app
from model.database import create_db_and_tables, create_db_engine
from model.store import TaskStore
from processor.dispatcher import WorkerDispatcher
from service.task_service import TaskService

TERMINAL_STATUSES = {"completed", "failed"}


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "temp"),
        OUTPUT_DIR=str(tmp_path / "output"),
        RESOLUTIONS="1024,800",
        WORKER_TIMEOUT_SECONDS=60,
    )


@pytest.fixture()
def store(test_settings):
    engine = create_db_engine(test_settings.DATABASE_URL)
    create_db_and_tables(engine)
    yield TaskStore(engine)
    engine.dispose()


@pytest.fixture()
def dispatcher(test_settings):
    d = WorkerDispatcher(start_method="spawn", timeout=test_settings.worker_timeout)
    yield d
    d.shutdown()


@pytest.fixture()
def service(store, dispatcher, test_settings):
    return TaskService(store, dispatcher, test_settings)


@pytest.fixture()
def client(service):
    """lifespan을 실행하지 않는 TestClient.

    lifespan은 실제 DATABASE_URL로 엔진과 디스패처를 만들기 때문에,
    with 블록 없이 생성하고 서비스만 의존성 오버라이드로 주입한다.
    """
    app.dependency_overrides[get_task_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_image(tmp_path):
    """tmp_path/input/<name> 에 단색 이미지를 저장하고 경로(str)를 반환한다."""

    def _make(name: str = "sample1.jpg", size: tuple[int, int] = (2048, 1536), color="blue") -> str:
        path = tmp_path / "input" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}.get(
            path.suffix.lower().lstrip("."), "JPEG"
        )
        Image.new("RGB", size, color=color).save(path, fmt)
        return str(path)

    return _make


def wait_until_terminal(get_status, timeout: float = 60.0) -> str:
    """get_status()가 completed/failed를 반환할 때까지 폴링한다."""
    deadline = time.monotonic() + timeout
    status = get_status()
    while status not in TERMINAL_STATUSES:
        if time.monotonic() > deadline:
            raise AssertionError(f"task still {status} after {timeout}s")
        time.sleep(0.1)
        status = get_status()
    return status
