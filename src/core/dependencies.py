from fastapi import Request

from service.task_service import TaskService


def get_task_service(request: Request) -> TaskService:
    """lifespan에서 만든 TaskService를 꺼낸다.

    전역 싱글턴 대신 app.state에 두기 때문에 테스트에서는
    app.dependency_overrides로 임시 DB/디렉토리를 쓰는 서비스로 바꿀 수 있다.
    """
    return request.app.state.task_service
