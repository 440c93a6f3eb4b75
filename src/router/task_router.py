from datetime import datetime

from fastapi import APIRouter, Depends, Form, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.dependencies import get_task_service
from model.image import ImageRecord
from model.task import COMPLETED, FAILED, TaskRecord
from service.task_service import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


# --- 요청/응답 스키마 (JSON 필드는 camelCase) ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(_CamelModel):
    image_path: str = Field(min_length=1, max_length=500)


class CreateTaskResponse(_CamelModel):
    task_id: str
    status: str
    price: float


class VariantResponse(_CamelModel):
    resolution: int
    path: str
    content_hash: str
    created_at: datetime


class TaskResponse(_CamelModel):
    task_id: str
    status: str
    price: float
    original_reference: str
    variants: list[VariantResponse] | None = None  # completed일 때만
    error: str | None = None  # failed일 때만
    created_at: datetime
    updated_at: datetime


class ImageResponse(_CamelModel):
    task_id: str
    original_reference: str
    resolution: int
    path: str
    content_hash: str
    created_at: datetime


def _created(task: TaskRecord) -> CreateTaskResponse:
    return CreateTaskResponse(task_id=task.id, status=task.status, price=task.price)


def _task_response(task: TaskRecord) -> TaskResponse:
    return TaskResponse(
        task_id=task.id,
        status=task.status,
        price=task.price,
        original_reference=task.original_path,
        variants=task.variants if task.status == COMPLETED else None,
        error=task.error if task.status == FAILED else None,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def image_response(image: ImageRecord) -> ImageResponse:
    return ImageResponse(
        task_id=image.task_id,
        original_reference=image.original_path,
        resolution=image.resolution,
        path=image.path,
        content_hash=image.content_hash,
        created_at=image.created_at,
    )


# --- 엔드포인트 ---


@router.post("", response_model=CreateTaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(req: CreateTaskRequest, service: TaskService = Depends(get_task_service)):
    """서버에 있는 이미지 경로로 태스크 생성. 처리는 백그라운드에서 진행되고 pending을 즉시 반환."""
    return _created(service.create_task(req.image_path))


@router.post("/upload", response_model=CreateTaskResponse, status_code=status.HTTP_201_CREATED)
def upload_task(
    file: UploadFile,
    reference: str | None = Form(default=None, max_length=500),
    service: TaskService = Depends(get_task_service),
):
    """이미지 파일 업로드로 태스크 생성.

    reference: 중복 판정에 쓸 식별자 (선택). 없으면 파일 내용의 해시를 쓴다.
    """
    return _created(service.create_task_from_upload(file, reference))


@router.get("/{task_id}", response_model=TaskResponse, response_model_exclude_none=True)
def get_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """태스크 상태 조회 (폴링용)."""
    return _task_response(service.get_task(task_id))


@router.get("/{task_id}/images", response_model=list[ImageResponse])
def list_task_images(task_id: str, service: TaskService = Depends(get_task_service)):
    """태스크가 만든 변형 이미지 색인 조회."""
    return [image_response(image) for image in service.list_task_images(task_id)]
