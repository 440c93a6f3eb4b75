"""태스크 하나를 처리하는 워커 프로세스의 진입점.

dispatcher.py가 multiprocessing.Process의 target으로 실행한다.
spawn 방식에서는 pickle로 전달되므로 반드시 top-level 함수여야 한다.

규칙: 어떤 경로로 끝나든 conn에는 정확히 한 번만 메시지를 보낸다.
프로세스가 메시지 없이 죽는 경우(segfault, OOM kill 등)는 dispatcher가 처리한다.
"""

from multiprocessing.connection import Connection

from loguru import logger

from core.exceptions import AppException
from processor.messages import WorkerMessage
from processor.transform import process_image
from utility.logger import setup_logger
from utility.timer import timer


def run_worker(
    conn: Connection,
    task_id: str,
    input_path: str,
    output_root: str,
    resolutions: list[int],
    source_name: str | None = None,
    log_level: str = "INFO",
) -> None:
    setup_logger(log_level)
    logger.info(f"[worker] starting task {task_id} ({input_path})")

    error: str | None = None
    variants = []
    with timer(f"worker task {task_id}") as t:
        try:
            variants = process_image(input_path, output_root, resolutions, source_name)
        except AppException as e:
            error = e.message
        except Exception as e:  # 워커 최상위: 어떤 예외든 실패 메시지로 변환
            logger.exception(f"[worker] unexpected error in task {task_id}")
            error = f"Image processing failed: {e}"

    if error is None:
        message = WorkerMessage.completed(task_id, variants, t.elapsed_ms)
        logger.info(f"[worker] task {task_id} completed ({len(variants)} variants)")
    else:
        message = WorkerMessage.failed(task_id, error, t.elapsed_ms)
        logger.warning(f"[worker] task {task_id} failed in {t.elapsed_ms}ms: {error}")

    try:
        conn.send(message.to_wire())
    finally:
        conn.close()
