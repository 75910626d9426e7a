"""A fixed-size pool of worker threads fed from a shared task queue."""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)

MAX_IDLE_TIME = 60.0


class ThreadPool:
    """Worker threads that run submitted callables in submission order."""

    max_thread_num: int = os.cpu_count() or 4

    def __init__(self, size: int | None = None) -> None:
        self._tasks: deque[Callable[[], object]] = deque()
        self._cond = threading.Condition()
        self._stopped = False
        self._threads: list[threading.Thread] = []
        self._threads_lock = threading.Lock()
        num = self.max_thread_num if size is None else size
        if num < 0:
            raise ValueError("size must not be negative")
        self.start(min(num, self.max_thread_num))

    @property
    def thread_count(self) -> int:
        with self._threads_lock:
            return len(self._threads)

    def start(self, num: int) -> None:
        """Grow the pool until it has ``num`` worker threads."""
        logger.info("ThreadPool start %d", num)
        while self.thread_count < num:
            worker = threading.Thread(target=self._task_loop, daemon=True)
            worker.start()
            with self._threads_lock:
                self._threads.append(worker)

    def submit(self, task: Callable[[], object]) -> None:
        """Queue ``task`` to run on a worker thread."""
        with self._cond:
            if self._stopped:
                raise RuntimeError("thread pool is stopped")
            self._tasks.append(task)
            self._cond.notify()

    def _task_loop(self) -> None:
        while True:
            with self._cond:
                if self._stopped:
                    break
                self._cond.wait_for(lambda: self._stopped or bool(self._tasks), timeout=MAX_IDLE_TIME)
                if not self._tasks:
                    continue
                task = self._tasks.popleft()
            try:
                task()
            except Exception as exc:
                logger.error("error: pool task %s", exc)
        logger.debug("thread: exit %s", threading.current_thread().name)

    def stop(self) -> None:
        """Stop all workers and wait for them to finish."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()
        with self._threads_lock:
            threads = list(self._threads)
        for worker in threads:
            worker.join()
        with self._threads_lock:
            self._threads.clear()

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()