import sys

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "pixel-engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # DB 설정
    DATABASE_URL: str = "sqlite:///./pixel_engine.db"

    # 파일 저장 경로
    UPLOAD_DIR: str = "temp"
    OUTPUT_DIR: str = "output"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB

    # 이미지 처리 설정 (쉼표 구분 문자열, .env와 동일한 형식)
    RESOLUTIONS: str = "1024,800"
    SUPPORTED_FORMATS: str = "jpg,jpeg,png,webp"

    # 워커 설정
    # spawn: 부모 프로세스의 스레드/락 상태를 물려받지 않는 가장 안전한 방식
    WORKER_START_METHOD: str = "spawn"
    WORKER_TIMEOUT_SECONDS: float = 300.0  # 0이면 타임아웃 없음

    @property
    def resolutions(self) -> list[int]:
        return [int(r) for r in self.RESOLUTIONS.split(",") if r.strip()]

    @property
    def supported_formats(self) -> list[str]:
        return [f.strip().lower() for f in self.SUPPORTED_FORMATS.split(",") if f.strip()]

    @property
    def worker_timeout(self) -> float | None:
        return self.WORKER_TIMEOUT_SECONDS or None

    @property
    def python_version(self) -> str:
        return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
