from fastapi import APIRouter, Depends, Path

from core.dependencies import get_task_service
from router.task_router import ImageResponse, image_response
from service.task_service import TaskService

router = APIRouter(prefix="/api/images", tags=["images"])


@router.get("/{content_hash}", response_model=list[ImageResponse])
def find_images_by_hash(
    content_hash: str = Path(min_length=1, max_length=64),
    service: TaskService = Depends(get_task_service),
):
    """내용 해시가 같은 변형 이미지 조회. 서로 다른 원본이 같은 결과를 낸 경우도 찾는다."""
    return [image_response(image) for image in service.find_images_by_hash(content_hash)]
