"""
Playlist import pipeline.

    playlist URL → fetch every video → extract one record per video
    (one at a time, paced) → review buffer

Only the fetch phase can fail the run. Extraction failures come back from
the extractor as flagged fallback records, so the loop never branches on
errors.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from openai import OpenAI

from farm_importer import config
from farm_importer.errors import (
    FarmImportError,
    InvalidPlaylistError,
    MissingCredentialError,
)
from farm_importer.services.youtube import extract_playlist_id, fetch_playlist_items
from .buffer import ReviewBuffer
from .contract import RawItem
from .extractor import extract_record

STATUS_TITLE_CHARS = 50


class PipelineStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {
    PipelineStatus.COMPLETED,
    PipelineStatus.FAILED,
    PipelineStatus.CANCELLED,
}


@dataclass(frozen=True)
class ProgressEvent:
    """
    current: 1-based index of the video about to be analyzed (0 while fetching)
    total: number of videos in the run (0 while fetching)
    status: short human-readable line
    """
    current: int
    total: int
    status: str


@dataclass
class PipelineResult:
    status: PipelineStatus
    total: int = 0
    processed: int = 0
    error: Optional[str] = None


class ImportPipeline:
    """
    Drives one import run into a ReviewBuffer.

    Collaborators are injectable so tests can run without the network:
    `fetch_items(playlist_id, api_key)` returns RawItems, `extract(item,
    client, api_key=...)` returns one record, `sleep(seconds)` is the
    pacing step and `should_cancel()` is checked before each video.
    """

    def __init__(
        self,
        buffer: ReviewBuffer,
        *,
        client: Optional[OpenAI] = None,
        fetch_items: Callable[[str, str], List[RawItem]] = fetch_playlist_items,
        extract: Callable[..., object] = extract_record,
        pacing_delay: Optional[float] = None,
        sleep: Callable[[float], object] = time.sleep,
        on_progress: Optional[Callable[[ProgressEvent], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.buffer = buffer
        self.client = client
        self.fetch_items = fetch_items
        self.extract = extract
        self.pacing_delay = config.PACING_DELAY_SECONDS if pacing_delay is None else pacing_delay
        self.sleep = sleep
        self.on_progress = on_progress
        self.should_cancel = should_cancel or (lambda: False)
        self.status = PipelineStatus.IDLE

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #
    def fetch(self, playlist_url: str, youtube_api_key: str, openai_api_key: str) -> List[RawItem]:
        """
        Validate inputs and fetch the playlist. Raises FarmImportError.
        """
        if not (playlist_url or "").strip():
            raise InvalidPlaylistError("Please enter a YouTube playlist URL")
        if not (youtube_api_key or "").strip():
            raise MissingCredentialError("Please enter your YouTube Data API key")
        if not (openai_api_key or "").strip():
            raise MissingCredentialError("Please enter your OpenAI API key")

        playlist_id = extract_playlist_id(playlist_url)
        if not playlist_id:
            raise InvalidPlaylistError(
                "Invalid playlist URL. Please provide a valid YouTube playlist link."
            )

        self._emit(0, 0, "Fetching playlist videos...")
        items = self.fetch_items(playlist_id, youtube_api_key)
        if not items:
            raise FarmImportError("No videos found in this playlist")
        return items

    def run(self, playlist_url: str, youtube_api_key: str, openai_api_key: str) -> PipelineResult:
        self.status = PipelineStatus.FETCHING
        try:
            items = self.fetch(playlist_url, youtube_api_key, openai_api_key)
        except FarmImportError as e:
            logging.error("[PIPELINE FETCH ERROR] %s", e)
            self.status = PipelineStatus.FAILED
            return PipelineResult(status=self.status, error=str(e))
        except Exception as e:  # noqa: BLE001
            logging.exception("[PIPELINE FETCH ERROR] %s", e)
            self.status = PipelineStatus.FAILED
            return PipelineResult(status=self.status, error="Failed to fetch playlist")

        total = len(items)
        processed = 0
        self.status = PipelineStatus.EXTRACTING
        logging.info("[PIPELINE] %d videos to analyze", total)

        for index, item in enumerate(items):
            if self.should_cancel():
                logging.info("[PIPELINE] cancelled after %d/%d videos", processed, total)
                self.status = PipelineStatus.CANCELLED
                return PipelineResult(status=self.status, total=total, processed=processed)

            self._emit(index + 1, total, f"Analyzing: {item.title[:STATUS_TITLE_CHARS]}...")

            record = self.extract(item, self.client, api_key=openai_api_key)
            self.buffer.append(record)
            processed += 1

            # Rate-limit pause between calls, not after the last one
            if index < total - 1:
                self._pause()

        self.status = PipelineStatus.COMPLETED
        logging.info("[PIPELINE] completed, %d records", processed)
        return PipelineResult(status=self.status, total=total, processed=processed)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _emit(self, current: int, total: int, status: str) -> None:
        event = ProgressEvent(current=current, total=total, status=status)
        logging.info("[PROGRESS %d/%d] %s", current, total, status)
        if self.on_progress is not None:
            self.on_progress(event)

    def _pause(self) -> None:
        if self.pacing_delay > 0:
            self.sleep(self.pacing_delay)
