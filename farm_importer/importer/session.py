# farm_importer/importer/session.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional

from farm_importer.utils.time import utc_now_iso
from .buffer import ReviewBuffer
from .pipeline import (
    ImportPipeline,
    PipelineResult,
    PipelineStatus,
    ProgressEvent,
    TERMINAL_STATUSES,
)


class RunInProgressError(RuntimeError):
    pass


class ImportSession:
    """
    One operator's import: the review buffer plus at most one running
    pipeline on a background thread.

    The buffer survives until the next start(); nothing is persisted.
    """

    def __init__(self, pipeline_factory: Optional[Callable[..., ImportPipeline]] = None) -> None:
        self.buffer = ReviewBuffer()
        self._pipeline_factory = pipeline_factory or ImportPipeline
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pipeline: Optional[ImportPipeline] = None
        self._progress = ProgressEvent(current=0, total=0, status="")
        self._result: Optional[PipelineResult] = None
        self._started_at: Optional[str] = None
        self._finished_at: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Run control
    # ------------------------------------------------------------------ #
    @property
    def status(self) -> PipelineStatus:
        if self._result is not None:
            return self._result.status
        if self._pipeline is not None:
            return self._pipeline.status
        return PipelineStatus.IDLE

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(
        self,
        playlist_url: str,
        youtube_api_key: str,
        openai_api_key: str,
        *,
        background: bool = True,
    ) -> None:
        """
        Clear the buffer and start a new run.

        Raises RunInProgressError if a run is still going.
        """
        with self._lock:
            if self.is_running():
                raise RunInProgressError("An import is already running")

            self.buffer.clear()
            self._cancel.clear()
            self._result = None
            self._progress = ProgressEvent(current=0, total=0, status="")
            self._started_at = utc_now_iso()
            self._finished_at = None
            self._pipeline = self._pipeline_factory(
                self.buffer,
                on_progress=self._on_progress,
                should_cancel=self._cancel.is_set,
                # wakes early on cancel
                sleep=self._cancel.wait,
            )

            args = (playlist_url, youtube_api_key, openai_api_key)
            if not background:
                self._run(*args)
                return

            self._thread = threading.Thread(target=self._run, args=args, daemon=True)
            self._thread.start()

    def cancel(self) -> bool:
        """Ask a running import to stop before its next video."""
        if not self.is_running():
            return False
        self._cancel.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #
    def progress(self) -> Dict[str, Any]:
        result = self._result
        return {
            "status": self.status.value,
            "current": self._progress.current,
            "total": self._progress.total,
            "message": self._progress.status,
            "records": len(self.buffer),
            "error": result.error if result else None,
            "finished": self.status in TERMINAL_STATUSES,
            "started_at": self._started_at,
            "finished_at": self._finished_at,
        }

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _on_progress(self, event: ProgressEvent) -> None:
        self._progress = event

    def _run(self, playlist_url: str, youtube_api_key: str, openai_api_key: str) -> None:
        assert self._pipeline is not None
        try:
            self._result = self._pipeline.run(playlist_url, youtube_api_key, openai_api_key)
        except Exception as e:  # noqa: BLE001
            logging.exception("[SESSION ERROR] %s", e)
            self._result = PipelineResult(
                status=PipelineStatus.FAILED,
                processed=len(self.buffer),
                error=str(e) or "Failed to process playlist",
            )
        finally:
            self._finished_at = utc_now_iso()


# Single in-memory session: one operator, one process.
_SESSION: Optional[ImportSession] = None


def get_session() -> ImportSession:
    global _SESSION
    if _SESSION is None:
        _SESSION = ImportSession()
    return _SESSION


def reset_session(session: Optional[ImportSession] = None) -> ImportSession:
    """Replace the current session (drops its records)."""
    global _SESSION
    _SESSION = session or ImportSession()
    return _SESSION
