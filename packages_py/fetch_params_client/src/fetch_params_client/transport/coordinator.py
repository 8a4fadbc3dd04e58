"""
Transport coordinator.

Owns the registry of in-flight tasks for one client. Transport deliveries
arrive as events keyed by task id; the completion handler registered for a
task runs at most once, because the Completed event removes the entry under
the lock before invoking it.
"""
import itertools
import logging
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, Optional, Union

from ..auth.auth_handler import AuthChallengeHandler, TrustValidator
from ..core.response import Response, ResponseAccumulator, compute_progress
from ..types import CompletionHandler, DownloadHandler, ProgressHandler, ResponseDecoder

logger = logging.getLogger("fetch_params_client.coordinator")


@dataclass
class ResponseHead:
    """Status line and headers of a response, as delivered by the transport."""

    status_code: int
    headers: Dict[str, str]
    url: Optional[str] = None
    mime_type: Optional[str] = None
    suggested_filename: Optional[str] = None
    expected_length: Optional[int] = None


@dataclass
class HeadReceived:
    task_id: int
    head: ResponseHead


@dataclass
class ChunkReceived:
    task_id: int
    data: bytes


@dataclass
class BodySent:
    task_id: int
    bytes_sent: int
    total: int


@dataclass
class Completed:
    task_id: int
    error: Optional[BaseException] = None


TransportEvent = Union[BodySent, HeadReceived, ChunkReceived, Completed]


@dataclass
class TaskEntry:
    """In-flight state of one task."""

    accumulator: ResponseAccumulator
    completion: Optional[CompletionHandler] = None
    progress: Optional[ProgressHandler] = None
    download_handler: Optional[DownloadHandler] = None
    auth: Optional[AuthChallengeHandler] = None
    security: Optional[TrustValidator] = None
    is_download: bool = False
    download_file: Optional[IO[bytes]] = None


class TransportCoordinator:
    """Registry of in-flight tasks plus the client-wide auth and trust hooks."""

    def __init__(
        self,
        auth: Optional[AuthChallengeHandler] = None,
        security: Optional[TrustValidator] = None,
        response_decoder: Optional[ResponseDecoder] = None,
    ):
        self.auth = auth
        self.security = security
        self.response_decoder = response_decoder
        self._lock = threading.Lock()
        self._tasks: Dict[int, TaskEntry] = {}
        self._ids = itertools.count(1)

    def next_task_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def add_task(
        self,
        task_id: int,
        completion: Optional[CompletionHandler] = None,
        is_download: bool = False,
    ) -> TaskEntry:
        """Register a task; an existing entry is kept and its handler replaced."""
        with self._lock:
            entry = self._tasks.get(task_id)
            if entry is None:
                entry = TaskEntry(
                    accumulator=ResponseAccumulator(self.response_decoder),
                    is_download=is_download,
                )
                self._tasks[task_id] = entry
            if completion is not None:
                entry.completion = completion
            return entry

    def entry_for(self, task_id: int) -> Optional[TaskEntry]:
        with self._lock:
            return self._tasks.get(task_id)

    def response_for(self, task_id: int) -> Optional[Response]:
        entry = self.entry_for(task_id)
        return entry.accumulator.response if entry is not None else None

    def remove_task(self, task_id: int) -> Optional[TaskEntry]:
        """Drop a task without delivering a completion."""
        with self._lock:
            entry = self._tasks.pop(task_id, None)
        if entry is not None:
            self._discard_download(entry)
        return entry

    @staticmethod
    def _discard_download(entry: TaskEntry) -> None:
        if entry.download_file is None:
            return
        entry.download_file.close()
        Path(entry.download_file.name).unlink(missing_ok=True)
        entry.download_file = None

    def auth_for(self, task_id: int) -> Optional[AuthChallengeHandler]:
        """Per-task auth handler, falling back to the client-wide one."""
        entry = self.entry_for(task_id)
        if entry is not None and entry.auth is not None:
            return entry.auth
        return self.auth

    def security_for(self, task_id: int) -> Optional[TrustValidator]:
        """Per-task trust validator, falling back to the client-wide one."""
        entry = self.entry_for(task_id)
        if entry is not None and entry.security is not None:
            return entry.security
        return self.security

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._tasks)

    def dispatch(self, event: TransportEvent) -> bool:
        """Deliver one transport event. Returns False if the task is unknown."""
        if isinstance(event, BodySent):
            return self._on_body_sent(event)
        if isinstance(event, HeadReceived):
            return self._on_head(event)
        if isinstance(event, ChunkReceived):
            return self._on_chunk(event)
        if isinstance(event, Completed):
            return self._on_completed(event)
        raise TypeError(f"Unknown transport event: {event!r}")

    def _on_body_sent(self, event: BodySent) -> bool:
        entry = self.entry_for(event.task_id)
        if entry is None:
            return False
        progress = compute_progress(event.bytes_sent, event.total)
        if entry.progress is not None and progress is not None:
            entry.progress(progress)
        return True

    def _on_head(self, event: HeadReceived) -> bool:
        entry = self.entry_for(event.task_id)
        if entry is None:
            return False
        head = event.head
        entry.accumulator.receive_head(
            status_code=head.status_code,
            headers=head.headers,
            url=head.url,
            mime_type=head.mime_type,
            suggested_filename=head.suggested_filename,
            expected_length=head.expected_length,
        )
        if entry.is_download and entry.download_file is None:
            entry.download_file = tempfile.NamedTemporaryFile(prefix="fetch-download-", delete=False)
        return True

    def _on_chunk(self, event: ChunkReceived) -> bool:
        entry = self.entry_for(event.task_id)
        if entry is None:
            return False
        if entry.download_file is not None:
            entry.download_file.write(event.data)
        progress = entry.accumulator.receive_chunk(event.data, keep=entry.download_file is None)
        if entry.progress is not None and progress is not None:
            entry.progress(progress)
        return True

    def _on_completed(self, event: Completed) -> bool:
        with self._lock:
            entry = self._tasks.pop(event.task_id, None)
        if entry is None:
            logger.debug(f"TransportCoordinator: task {event.task_id} already completed")
            return False

        response = entry.accumulator.complete(event.error)
        if entry.download_file is not None:
            if response.error is not None:
                self._discard_download(entry)
            else:
                entry.download_file.close()
                response.download_path = entry.download_file.name
                if entry.download_handler is not None:
                    entry.download_handler(entry.download_file.name)

        logger.debug(
            f"TransportCoordinator: task {event.task_id} completed "
            f"status={response.status_code} error={response.error!r}"
        )
        if entry.completion is not None:
            entry.completion(response)
        return True
