"""워커 ↔ 코디네이터 메시지 스키마.

프로세스 경계를 넘는 유일한 계약이다. 파이프에는 pydantic 객체가 아니라
to_wire()가 만든 camelCase dict를 보낸다.

    성공: {"taskId", "status": "completed", "variants": [{"resolution", "path", "contentHash"}], "processingTimeMs"}
    실패: {"taskId", "status": "failed", "error", "processingTimeMs"}
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

COMPLETED = "completed"
FAILED = "failed"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class VariantPayload(_WireModel):
    resolution: int
    path: str
    content_hash: str


class WorkerMessage(_WireModel):
    task_id: str
    status: Literal["completed", "failed"]
    variants: list[VariantPayload] = Field(default_factory=list)
    error: str | None = None
    processing_time_ms: int = 0

    @model_validator(mode="after")
    def _check_outcome(self) -> "WorkerMessage":
        # 성공은 error 없이, 실패는 비어 있지 않은 error와 빈 variants로만 온다
        if self.status == FAILED:
            if not self.error:
                raise ValueError("failed message requires a non-empty error")
            if self.variants:
                raise ValueError("failed message must not carry variants")
        elif self.error is not None:
            raise ValueError("completed message must not carry an error")
        return self

    @classmethod
    def completed(
        cls, task_id: str, variants: list[VariantPayload], processing_time_ms: int = 0
    ) -> "WorkerMessage":
        return cls(
            task_id=task_id,
            status=COMPLETED,
            variants=variants,
            processing_time_ms=processing_time_ms,
        )

    @classmethod
    def failed(cls, task_id: str, error: str, processing_time_ms: int = 0) -> "WorkerMessage":
        return cls(
            task_id=task_id,
            status=FAILED,
            error=error or "Unknown error",
            processing_time_ms=processing_time_ms,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == COMPLETED

    def to_wire(self) -> dict:
        exclude = {"error"} if self.succeeded else {"variants"}
        return self.model_dump(by_alias=True, exclude=exclude)

    @classmethod
    def from_wire(cls, data: dict) -> "WorkerMessage":
        return cls.model_validate(data)
