"""태스크 코디네이터.

요청 경로(create_task)는 검증 → 중복 확인 → 가격 책정 → pending 저장 → 워커 디스패치까지만
하고 즉시 반환한다. 처리 결과는 디스패처의 감시 스레드에서 apply_outcome()으로 반영된다.
"""

import hashlib
import os
import random
import uuid
from collections.abc import Callable
from concurrent.futures import Future

from fastapi import UploadFile
from loguru import logger

from core.config import Settings
from core.exceptions import (
    DispatchFailure,
    DuplicateImage,
    InvalidImage,
    InvalidRequest,
    TaskNotFound,
)
from model.image import ImageRecord
from model.store import TaskStore
from model.task import TaskRecord
from processor.dispatcher import WorkerDispatcher
from processor.messages import WorkerMessage
from processor.transform import clean_source_name, validate_image
from service.duplicate_guard import DuplicateGuard, canonicalize

PRICE_MIN = 5.0
PRICE_MAX = 50.0

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


def generate_price() -> float:
    """5.0 ~ 50.0 사이 가격 (소수점 한 자리)."""
    return round(random.uniform(PRICE_MIN, PRICE_MAX), 1)


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        dispatcher: WorkerDispatcher,
        settings: Settings,
        price_fn: Callable[[], float] = generate_price,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._settings = settings
        self._guard = DuplicateGuard(store)
        self._price_fn = price_fn

    # --- 생성 ---

    def create_task(
        self,
        input_path: str,
        reference: str | None = None,
        source_name: str | None = None,
        transient: bool = False,
    ) -> TaskRecord:
        """이미지 처리 태스크를 만들고 워커를 띄운 뒤 pending 태스크를 반환한다.

        1. 이미지 검증 실패 → InvalidImage (레코드 생성 안 함)
        2. 중복 참조 → DuplicateImage (레코드 생성 안 함)
        3. 가격 책정 후 pending 저장
        4. 워커 디스패치. 시작 자체가 실패하면 이미 저장된 태스크를 failed로 전이
        """
        if not validate_image(input_path, self._settings.supported_formats):
            raise InvalidImage

        canonical = canonicalize(reference or input_path)
        if self._guard.is_duplicate(canonical):
            raise DuplicateImage(f"이미 처리되었거나 처리 중인 이미지입니다: {canonical}")

        task = self._store.create_task(
            TaskRecord(
                price=self._price_fn(),
                original_path=canonical,
                input_path=input_path,
                source_name=clean_source_name(source_name or canonical),
                transient=transient,
            )
        )
        logger.info(f"Task {task.id} created (price={task.price}, reference={canonical})")

        try:
            future = self._dispatcher.dispatch(
                task.id,
                input_path,
                self._settings.OUTPUT_DIR,
                self._settings.resolutions,
                task.source_name,
            )
        except DispatchFailure as e:
            logger.error(f"Task {task.id}: {e.message}")
            self.apply_outcome(WorkerMessage.failed(task.id, e.message))
            return self.get_task(task.id)

        future.add_done_callback(self._on_worker_done)
        return task

    def create_task_from_upload(self, file: UploadFile, reference: str | None = None) -> TaskRecord:
        """업로드 파일을 임시 경로에 저장하고 태스크를 만든다.

        중복 판정 키는 호출자가 준 reference, 없으면 업로드 내용의 MD5다.
        임시 파일은 태스크가 끝나면 삭제되고, 생성이 거부되거나 저장 중 에러가 나면 즉시 삭제된다.
        """
        if file.content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidImage("JPEG, PNG, WebP 이미지만 업로드할 수 있습니다")

        max_size = self._settings.MAX_FILE_SIZE
        data = file.file.read(max_size + 1)
        if not data:
            raise InvalidRequest("업로드된 파일이 비어 있습니다")
        if len(data) > max_size:
            raise InvalidRequest(f"파일이 너무 큽니다. 최대 {max_size // (1024 * 1024)}MB")

        filename = file.filename or "image.jpg"
        ext = os.path.splitext(filename)[1].lower()
        os.makedirs(self._settings.UPLOAD_DIR, exist_ok=True)
        saved_path = os.path.join(self._settings.UPLOAD_DIR, f"{uuid.uuid4().hex}{ext}")
        with open(saved_path, "wb") as f:
            f.write(data)

        canonical = reference or f"upload:{hashlib.md5(data).hexdigest()}"
        try:
            return self.create_task(
                saved_path, reference=canonical, source_name=filename, transient=True
            )
        except Exception:
            self._remove_transient(saved_path, task_id=None)
            raise

    # --- 조회 ---

    def get_task(self, task_id: str) -> TaskRecord:
        task = self._store.get_task(task_id)
        if task is None:
            raise TaskNotFound
        return task

    def list_task_images(self, task_id: str) -> list[ImageRecord]:
        self.get_task(task_id)
        return self._store.find_images_by_task(task_id)

    def find_images_by_hash(self, content_hash: str) -> list[ImageRecord]:
        """같은 내용(MD5)으로 만들어진 변형 이미지. 없으면 빈 리스트."""
        return self._store.find_images_by_hash(content_hash.strip().lower())

    # --- 결과 반영 ---

    def apply_outcome(self, message: WorkerMessage) -> bool:
        """워커의 종료 메시지를 태스크에 반영한다.

        pending일 때만 반영되며, 이미 종료된 태스크면 아무것도 하지 않고 False.
        """
        expected = len(self._settings.resolutions)
        if message.succeeded and len(message.variants) != expected:
            message = WorkerMessage.failed(
                message.task_id,
                f"Expected {expected} variants, got {len(message.variants)}",
                message.processing_time_ms,
            )

        if message.succeeded:
            applied = self._store.complete_task(message.task_id, message.variants)
        else:
            applied = self._store.fail_task(message.task_id, message.error)

        if not applied:
            logger.debug(f"Task {message.task_id}: result ignored (not pending)")
            return False

        if message.succeeded:
            logger.info(
                f"Task {message.task_id} completed "
                f"({len(message.variants)} variants, {message.processing_time_ms}ms)"
            )
        else:
            logger.warning(f"Task {message.task_id} failed: {message.error}")

        task = self._store.get_task(message.task_id)
        if task is not None and task.transient:
            self._remove_transient(task.input_path, task_id=task.id)
        return True

    def _on_worker_done(self, future: Future) -> None:
        message: WorkerMessage = future.result()
        try:
            self.apply_outcome(message)
        except Exception:  # 감시 스레드 경계: 여기서 놓치면 로그도 남지 않는다
            logger.exception(f"Failed to apply worker result for task {message.task_id}")

    @staticmethod
    def _remove_transient(path: str, task_id: str | None) -> None:
        """임시 업로드 파일 삭제. 실패해도 태스크 상태에는 영향이 없다."""
        try:
            os.remove(path)
            logger.debug(f"Removed transient input {path}")
        except OSError as e:
            logger.warning(f"Failed to remove transient input {path} (task={task_id}): {e}")
