"""태스크당 워커 프로세스 하나를 띄우고 종료 메시지 하나를 돌려받는 디스패처.

핵심 설계:
- 풀을 쓰지 않고 태스크마다 새 프로세스를 만든다. 한 이미지 처리 중
  프로세스가 죽어도 API 프로세스나 다른 태스크에 영향이 없다.
- 결과는 단방향 Pipe로 한 번만 받는다. 감시 스레드가 메시지를 기다리고,
  메시지 없이 끝나면(크래시, 비정상 종료 코드, 타임아웃) 실패 메시지를 대신 만든다.
- dispatch()는 concurrent.futures.Future를 즉시 반환한다. 호출자는 기다리지
  않고 add_done_callback()으로 결과를 받는다. 메시지에는 taskId가 들어 있다.
"""

import multiprocessing
import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from multiprocessing.connection import Connection
from multiprocessing.process import BaseProcess

from loguru import logger
from pydantic import ValidationError

from core.exceptions import DispatchFailure
from processor.messages import WorkerMessage
from processor.worker import run_worker

# 메시지를 보낸 워커가 스스로 종료할 때까지 기다리는 시간
EXIT_GRACE_SECONDS = 5.0


@dataclass
class _Unit:
    task_id: str
    process: BaseProcess
    conn: Connection
    future: Future
    monitor: threading.Thread | None = None
    cancelled: bool = field(default=False)


class WorkerDispatcher:
    def __init__(
        self,
        start_method: str = "spawn",
        timeout: float | None = None,
        log_level: str = "INFO",
        target: Callable = run_worker,
    ):
        self._ctx = multiprocessing.get_context(start_method)
        self._timeout = timeout
        self._log_level = log_level
        self._target = target
        self._units: dict[str, _Unit] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._units)

    def dispatch(
        self,
        task_id: str,
        input_path: str,
        output_root: str,
        resolutions: list[int],
        source_name: str | None = None,
    ) -> Future:
        """워커 프로세스를 시작하고 종료 메시지를 받을 Future를 반환한다.

        프로세스를 시작하지 못하면 DispatchFailure를 발생시킨다.
        """
        with self._lock:
            if self._closed:
                raise DispatchFailure("Dispatcher is shut down")

        recv_conn, send_conn = self._ctx.Pipe(duplex=False)
        process = self._ctx.Process(
            target=self._target,
            args=(
                send_conn,
                task_id,
                input_path,
                output_root,
                list(resolutions),
                source_name,
                self._log_level,
            ),
            name=f"worker-{task_id[:8]}",
            daemon=True,
        )

        try:
            process.start()
        except Exception as e:  # OSError(fork 실패), pickle 실패 등
            recv_conn.close()
            send_conn.close()
            raise DispatchFailure(f"Failed to start worker: {e}") from e

        # 부모 쪽 송신단을 닫아야 자식이 메시지 없이 죽었을 때 EOF를 받는다
        send_conn.close()

        unit = _Unit(task_id=task_id, process=process, conn=recv_conn, future=Future())
        unit.monitor = threading.Thread(
            target=self._watch, args=(unit,), name=f"monitor-{task_id[:8]}", daemon=True
        )
        pid = process.pid
        with self._lock:
            # shutdown()이 스냅샷을 뜬 뒤라면 등록하지 않고 바로 종료시킨다
            closed = self._closed
            if not closed:
                self._units[task_id] = unit
                unit.monitor.start()
        if closed:
            process.terminate()
            self._teardown(unit)
            process.close()
            raise DispatchFailure("Dispatcher is shut down")

        logger.info(f"Dispatched task {task_id} to pid {pid}")
        return unit.future

    def shutdown(self, wait: bool = True, timeout: float = 10.0) -> None:
        """실행 중인 워커를 모두 종료한다. 해당 태스크는 실패 메시지를 받는다."""
        with self._lock:
            self._closed = True
            units = list(self._units.values())
            for unit in units:
                if unit.process.is_alive():
                    logger.warning(f"Terminating worker for task {unit.task_id} (shutdown)")
                    unit.cancelled = True
                    unit.process.terminate()

        if wait:
            for unit in units:
                if unit.monitor is not None:
                    unit.monitor.join(timeout)

    # --- 감시 스레드 ---

    def _watch(self, unit: _Unit) -> None:
        message: WorkerMessage | None = None
        reason: str | None = None

        try:
            if unit.conn.poll(self._timeout):
                message, reason = self._receive(unit)
            else:
                reason = f"Worker timed out after {self._timeout:g}s"
                logger.warning(f"Task {unit.task_id}: {reason}")
                unit.process.terminate()
        finally:
            exitcode = self._teardown(unit)
            with self._lock:
                # 등록 해제와 close를 함께 해야 shutdown()이 닫힌 프로세스를 만지지 않는다
                self._units.pop(unit.task_id, None)
                unit.process.close()

        if message is None:
            if reason is None:
                reason = self._exit_reason(unit, exitcode)
            logger.error(f"Task {unit.task_id}: {reason}")
            message = WorkerMessage.failed(unit.task_id, reason)

        unit.future.set_result(message)

    def _receive(self, unit: _Unit) -> tuple[WorkerMessage | None, str | None]:
        """파이프에서 메시지를 읽는다. EOF면 (None, None) → 종료 코드로 사유를 정한다."""
        try:
            data = unit.conn.recv()
        except EOFError:
            return None, None
        except Exception as e:  # 언피클 실패 포함, 읽을 수 없는 메시지는 모두 실패로 본다
            return None, f"Failed to read worker message: {e}"

        try:
            message = WorkerMessage.from_wire(data)
        except ValidationError as e:
            return None, f"Invalid worker message: {e.error_count()} validation error(s)"

        if message.task_id != unit.task_id:
            return None, f"Worker reported mismatched task id {message.task_id}"
        return message, None

    def _teardown(self, unit: _Unit) -> int | None:
        """성공/실패/에러 경로 모두에서 프로세스를 정리한다."""
        process = unit.process
        process.join(EXIT_GRACE_SECONDS)
        if process.is_alive():
            logger.warning(f"Worker for task {unit.task_id} did not exit, terminating")
            process.terminate()
            process.join(EXIT_GRACE_SECONDS)
        if process.is_alive():
            process.kill()
            process.join()
        unit.conn.close()
        logger.debug(f"Worker for task {unit.task_id} torn down (exitcode={process.exitcode})")
        return process.exitcode

    @staticmethod
    def _exit_reason(unit: _Unit, exitcode: int | None) -> str:
        if unit.cancelled:
            return "Worker terminated during shutdown"
        if exitcode is None:
            return "Worker exited without reporting a result"
        if exitcode < 0:
            return f"Worker crashed (signal {-exitcode})"
        if exitcode > 0:
            return f"Worker exited with code {exitcode}"
        return "Worker exited without reporting a result"
