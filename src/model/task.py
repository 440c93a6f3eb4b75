import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"


def _new_task_id() -> str:
    return uuid.uuid4().hex


class TaskRecord(SQLModel, table=True):
    __tablename__ = "task"

    id: str = Field(default_factory=_new_task_id, primary_key=True)
    status: str = Field(default=PENDING, index=True)  # pending, completed, failed
    price: float
    original_path: str = Field(index=True)  # 중복 판정용 정규화된 참조
    input_path: str  # 워커가 실제로 읽는 파일
    source_name: str  # 출력 디렉토리 이름의 기준
    transient: bool = False  # True면 처리 후 input_path를 삭제한다
    # 완료 전에는 빈 리스트. 항목: {"resolution", "path", "content_hash", "created_at"}
    variants: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
