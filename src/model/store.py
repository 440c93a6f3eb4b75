"""태스크/변형 이미지 저장소.

엔진을 생성자로 받아 호출마다 짧은 Session을 연다. 워커 감시 스레드에서도
호출되므로 Session을 공유하지 않는다.

종료 전이(complete_task, fail_task)는 `UPDATE ... WHERE status = 'pending'` 한 번으로
처리한다. 같은 태스크에 결과가 두 번 적용돼도 두 번째는 아무 행도 바꾸지 않는다.
"""

from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from model.image import ImageRecord
from model.task import COMPLETED, FAILED, PENDING, TaskRecord
from processor.messages import VariantPayload


class TaskStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    # --- 태스크 ---

    def create_task(self, task: TaskRecord) -> TaskRecord:
        with Session(self.engine) as session:
            session.add(task)
            session.commit()
            session.refresh(task)
            return task

    def get_task(self, task_id: str) -> TaskRecord | None:
        with Session(self.engine) as session:
            return session.get(TaskRecord, task_id)

    def has_pending_task(self, original_path: str) -> bool:
        with Session(self.engine) as session:
            stmt = select(TaskRecord.id).where(
                TaskRecord.original_path == original_path,
                TaskRecord.status == PENDING,
            )
            return session.exec(stmt).first() is not None

    def complete_task(self, task_id: str, variants: list[VariantPayload]) -> bool:
        """pending → completed. variants를 태스크에 내장하고 image 색인에도 기록한다.

        이미 종료된 태스크거나 존재하지 않으면 False (아무것도 바꾸지 않음).
        """
        now = datetime.now(UTC)
        embedded = [
            {
                "resolution": v.resolution,
                "path": v.path,
                "content_hash": v.content_hash,
                "created_at": now.isoformat(),
            }
            for v in variants
        ]

        with Session(self.engine) as session:
            result = session.connection().execute(
                update(TaskRecord)
                .where(TaskRecord.id == task_id, TaskRecord.status == PENDING)
                .values(status=COMPLETED, variants=embedded, error=None, updated_at=now)
            )
            if result.rowcount != 1:
                session.rollback()
                return False

            original_path = session.exec(
                select(TaskRecord.original_path).where(TaskRecord.id == task_id)
            ).one()
            session.add_all(
                ImageRecord(
                    task_id=task_id,
                    original_path=original_path,
                    resolution=v.resolution,
                    path=v.path,
                    content_hash=v.content_hash,
                    created_at=now,
                )
                for v in variants
            )
            session.commit()
            return True

    def fail_task(self, task_id: str, error: str) -> bool:
        """pending → failed. variants는 비워 둔다."""
        now = datetime.now(UTC)
        with Session(self.engine) as session:
            result = session.connection().execute(
                update(TaskRecord)
                .where(TaskRecord.id == task_id, TaskRecord.status == PENDING)
                .values(status=FAILED, variants=[], error=error, updated_at=now)
            )
            if result.rowcount != 1:
                session.rollback()
                return False
            session.commit()
            return True

    # --- 변형 이미지 색인 ---

    def has_images_for(self, original_path: str) -> bool:
        with Session(self.engine) as session:
            stmt = select(ImageRecord.id).where(ImageRecord.original_path == original_path)
            return session.exec(stmt).first() is not None

    def find_images_by_task(self, task_id: str) -> list[ImageRecord]:
        with Session(self.engine) as session:
            stmt = (
                select(ImageRecord)
                .where(ImageRecord.task_id == task_id)
                .order_by(ImageRecord.id)
            )
            return list(session.exec(stmt).all())

    def find_images_by_hash(self, content_hash: str) -> list[ImageRecord]:
        with Session(self.engine) as session:
            stmt = (
                select(ImageRecord)
                .where(ImageRecord.content_hash == content_hash)
                .order_by(ImageRecord.id)
            )
            return list(session.exec(stmt).all())
