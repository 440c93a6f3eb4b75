import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from core.config import settings
from core.error_handlers import app_exception_handler, validation_exception_handler
from core.exceptions import AppException
from core.lifespan import lifespan
from core.middleware import RequestLoggingMiddleware
from router.health_router import router as health_router
from router.image_router import router as image_router
from router.task_router import router as task_router

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="이미지 리사이즈 태스크 API. 요청은 즉시 pending으로 응답하고 처리는 워커 프로세스에서 진행",
    lifespan=lifespan,
)
app.state.settings = settings

app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(task_router)
app.include_router(image_router)
app.include_router(health_router)


@app.get("/")
def root():
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "documentation": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )
