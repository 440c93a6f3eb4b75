"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error_code": "...", "message": "..."} 형식의 JSON 응답을 생성한다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 요청 관련 ---


class InvalidRequest(AppException):
    status_code = 400
    error_code = "INVALID_REQUEST"
    message = "잘못된 요청입니다"


# --- 이미지 관련 ---


class InvalidImage(AppException):
    status_code = 400
    error_code = "INVALID_IMAGE"
    message = "이미지 파일이 유효하지 않거나 지원하지 않는 형식입니다"


class DuplicateImage(AppException):
    status_code = 409
    error_code = "DUPLICATE_IMAGE"
    message = "이미 처리되었거나 처리 중인 이미지입니다"


class UnprocessableImage(AppException):
    """워커 내부에서 디코딩/메타데이터 읽기에 실패한 경우.

    HTTP로 직접 전달되지 않고 태스크의 failed 사유로 기록된다.
    """

    status_code = 422
    error_code = "UNPROCESSABLE_IMAGE"
    message = "이미지를 처리할 수 없습니다"


# --- 태스크 관련 ---


class TaskNotFound(AppException):
    status_code = 404
    error_code = "TASK_NOT_FOUND"
    message = "태스크를 찾을 수 없습니다"


class DispatchFailure(AppException):
    status_code = 500
    error_code = "DISPATCH_FAILURE"
    message = "워커 프로세스를 시작하지 못했습니다"
