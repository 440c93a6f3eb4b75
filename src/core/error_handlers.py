"""전역 예외 핸들러.

AppException 계열 예외와 요청 검증 에러를 잡아 일관된 JSON 응답으로 변환한다.
main.py에서 app.add_exception_handler()로 등록한다.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} | {exc.status_code} {exc.error_code} | {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """pydantic 검증 에러도 같은 형식으로 응답한다. 첫 번째 에러만 message에 담는다."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "요청 형식이 올바르지 않습니다"

    return JSONResponse(
        status_code=422,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": message,
        },
    )
