from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class ImageRecord(SQLModel, table=True):
    """생성된 변형 이미지 한 장. 태스크에 내장된 variants의 색인용 사본."""

    __tablename__ = "image"

    id: int | None = Field(default=None, primary_key=True)
    task_id: str = Field(foreign_key="task.id", index=True)
    original_path: str = Field(index=True)
    resolution: int = Field(index=True)
    path: str = Field(index=True)
    content_hash: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
