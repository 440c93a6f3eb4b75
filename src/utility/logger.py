import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{process.name}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(level: str = "DEBUG"):
    """Loguru 기본 설정.

    API 프로세스는 시작 시(lifespan) 한 번, 워커 프로세스는 시작 직후 한 번 호출한다.
    spawn 방식 워커는 부모의 sink 설정을 물려받지 않으므로 각자 설정해야 한다.
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())
    return logger
