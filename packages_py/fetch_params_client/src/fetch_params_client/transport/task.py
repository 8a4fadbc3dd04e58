"""
HTTPTask: one request executed asynchronously against a transport.

States: INITIALIZED -> READY -> EXECUTING -> FINISHED, with READY -> FINISHED
for tasks cancelled before they start. A task cancelled while EXECUTING but
before the transport has the request (waiting on a dependency, or not yet
scheduled) also finishes without a completion.
"""
import asyncio
import logging
import threading
from enum import IntEnum
from typing import AsyncIterator, List, Optional, Protocol, Union

import httpx

from ..auth.auth_handler import AuthChallengeHandler, TrustValidator
from ..core.response import Response
from ..errors import RequestCancelledError, TransportError
from ..types import (
    CompletionHandler,
    DownloadHandler,
    PreparedRequest,
    ProgressHandler,
    UploadCallback,
)
from .coordinator import (
    BodySent,
    ChunkReceived,
    Completed,
    HeadReceived,
    ResponseHead,
    TransportCoordinator,
)

logger = logging.getLogger("fetch_params_client.task")


class Transport(Protocol):
    """Sends a request and streams back its head and body chunks."""

    def send(
        self,
        request: PreparedRequest,
        auth: Optional[AuthChallengeHandler] = None,
        trust_validator: Optional[TrustValidator] = None,
        on_upload: Optional[UploadCallback] = None,
    ) -> AsyncIterator[Union[ResponseHead, bytes]]:
        ...


class TaskState(IntEnum):
    INITIALIZED = 0
    READY = 1
    EXECUTING = 2
    FINISHED = 3


_ALLOWED_TRANSITIONS = {
    (TaskState.INITIALIZED, TaskState.READY),
    (TaskState.READY, TaskState.EXECUTING),
    (TaskState.READY, TaskState.FINISHED),
    (TaskState.EXECUTING, TaskState.FINISHED),
}


class HTTPTask:
    """A single request. Start it with ``start()`` and await ``wait()``."""

    def __init__(
        self,
        request: PreparedRequest,
        coordinator: TransportCoordinator,
        transport: Transport,
        is_download: bool = False,
    ):
        self.request = request
        self.is_download = is_download
        self._coordinator = coordinator
        self._transport = transport
        self._state_lock = threading.Lock()
        self._state = TaskState.INITIALIZED
        self._cancelled = False
        self._sent = False
        self._dependencies: List["HTTPTask"] = []
        self._finished = asyncio.Event()
        self._runner: Optional["asyncio.Task[None]"] = None
        self._response: Optional[Response] = None
        self._on_finish: Optional[CompletionHandler] = None

        self.task_id = coordinator.next_task_id()
        coordinator.add_task(self.task_id, completion=self._complete, is_download=is_download)
        self._set_state(TaskState.READY)

    def __repr__(self) -> str:
        return (
            f"HTTPTask(id={self.task_id}, {self.request.method} {self.request.url}, "
            f"state={self.state.name})"
        )

    # State

    @property
    def state(self) -> TaskState:
        with self._state_lock:
            return self._state

    def _set_state(self, new_state: TaskState) -> bool:
        with self._state_lock:
            if self._state == TaskState.FINISHED:
                logger.warning(f"HTTPTask {self.task_id}: attempted to leave FINISHED state")
                return False
            if (self._state, new_state) not in _ALLOWED_TRANSITIONS:
                raise RuntimeError(
                    f"Invalid state transition {self._state.name} -> {new_state.name}"
                )
            self._state = new_state
        if new_state == TaskState.FINISHED:
            self._finished.set()
        return True

    @property
    def is_ready(self) -> bool:
        return self.state == TaskState.READY

    @property
    def is_executing(self) -> bool:
        return self.state == TaskState.EXECUTING

    @property
    def is_finished(self) -> bool:
        return self.state == TaskState.FINISHED

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def response(self) -> Optional[Response]:
        return self._response

    # Per-task hooks, stored on the coordinator entry while the task is registered

    @property
    def on_finish(self) -> Optional[CompletionHandler]:
        return self._on_finish

    @on_finish.setter
    def on_finish(self, handler: Optional[CompletionHandler]) -> None:
        self._on_finish = handler

    @property
    def progress(self) -> Optional[ProgressHandler]:
        entry = self._coordinator.entry_for(self.task_id)
        return entry.progress if entry is not None else None

    @progress.setter
    def progress(self, handler: Optional[ProgressHandler]) -> None:
        entry = self._coordinator.entry_for(self.task_id)
        if entry is not None:
            entry.progress = handler

    @property
    def download_handler(self) -> Optional[DownloadHandler]:
        entry = self._coordinator.entry_for(self.task_id)
        return entry.download_handler if entry is not None else None

    @download_handler.setter
    def download_handler(self, handler: Optional[DownloadHandler]) -> None:
        entry = self._coordinator.entry_for(self.task_id)
        if entry is not None:
            entry.download_handler = handler

    @property
    def auth(self) -> Optional[AuthChallengeHandler]:
        entry = self._coordinator.entry_for(self.task_id)
        return entry.auth if entry is not None else None

    @auth.setter
    def auth(self, handler: Optional[AuthChallengeHandler]) -> None:
        entry = self._coordinator.entry_for(self.task_id)
        if entry is not None:
            entry.auth = handler

    @property
    def security(self) -> Optional[TrustValidator]:
        entry = self._coordinator.entry_for(self.task_id)
        return entry.security if entry is not None else None

    @security.setter
    def security(self, validator: Optional[TrustValidator]) -> None:
        entry = self._coordinator.entry_for(self.task_id)
        if entry is not None:
            entry.security = validator

    # Scheduling

    def add_dependency(self, task: "HTTPTask") -> None:
        """Do not hand this task to the transport before ``task`` finishes."""
        if self.state >= TaskState.EXECUTING:
            raise RuntimeError("Dependencies cannot be modified after execution has begun")
        self._dependencies.append(task)

    def start(self, completion: Optional[CompletionHandler] = None) -> None:
        """Schedule the request on the running event loop."""
        if completion is not None:
            self._on_finish = completion
        if self._cancelled:
            self._set_state(TaskState.FINISHED)
            return
        if self.state != TaskState.READY:
            raise RuntimeError(f"HTTPTask {self.task_id} has already been started")

        self._set_state(TaskState.EXECUTING)
        self._runner = asyncio.get_running_loop().create_task(self._run())
        self._runner.add_done_callback(self._runner_done)

    def cancel(self) -> None:
        """Cancel the task.

        Before the transport has the request: the task finishes immediately and
        no completion runs. In flight: the transport is aborted and the
        completion runs once with RequestCancelledError.
        """
        if self.is_finished:
            return
        self._cancelled = True
        if self.state == TaskState.EXECUTING and self._sent:
            if self._runner is not None:
                self._runner.cancel()
            return
        self._coordinator.remove_task(self.task_id)
        if self._runner is not None:
            self._runner.cancel()
        self._set_state(TaskState.FINISHED)

    async def wait(self) -> Optional[Response]:
        """Wait for the task to finish; returns None if it was cancelled before sending.

        The task must have been started or cancelled, otherwise this waits forever.
        Exceptions raised by a completion handler are re-raised here.
        """
        if self._runner is not None:
            await asyncio.wait({self._runner})
            if not self._runner.cancelled() and self._runner.exception() is not None:
                raise self._runner.exception()
        await self._finished.wait()
        return self._response

    async def _run(self) -> None:
        for dependency in self._dependencies:
            await dependency._finished.wait()

        error: Optional[BaseException] = None
        self._sent = True
        try:
            async for delivery in self._transport.send(
                self.request,
                auth=self._coordinator.auth_for(self.task_id),
                trust_validator=self._coordinator.security_for(self.task_id),
                on_upload=self._body_sent,
            ):
                if isinstance(delivery, ResponseHead):
                    self._coordinator.dispatch(HeadReceived(self.task_id, delivery))
                else:
                    self._coordinator.dispatch(ChunkReceived(self.task_id, delivery))
        except (httpx.HTTPError, httpx.StreamError, TransportError) as e:
            logger.debug(f"HTTPTask {self.task_id}: transport error {e!r}")
            error = e
        self._coordinator.dispatch(Completed(self.task_id, error))

    def _body_sent(self, bytes_sent: int, total: int) -> None:
        self._coordinator.dispatch(BodySent(self.task_id, bytes_sent, total))

    def _runner_done(self, runner: "asyncio.Task[None]") -> None:
        # Completed is idempotent; this only delivers for tasks that never reached it.
        # Tasks cancelled before sending were already removed from the coordinator.
        if runner.cancelled():
            self._coordinator.dispatch(Completed(self.task_id, RequestCancelledError()))
            return
        error = runner.exception()
        if error is not None:
            logger.error(f"HTTPTask {self.task_id}: runner failed: {error!r}")
            self._coordinator.dispatch(Completed(self.task_id, error))

    def _complete(self, response: Response) -> None:
        self._response = response
        self._set_state(TaskState.FINISHED)
        if self._on_finish is not None:
            self._on_finish(response)
