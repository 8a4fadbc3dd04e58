"""
Task orchestration and the httpx transport for fetch_params_client.
"""
from .coordinator import (
    BodySent,
    ChunkReceived,
    Completed,
    HeadReceived,
    ResponseHead,
    TaskEntry,
    TransportCoordinator,
    TransportEvent,
)
from .httpx_transport import HttpxTransport
from .task import HTTPTask, TaskState, Transport

__all__ = [
    "BodySent",
    "ChunkReceived",
    "Completed",
    "HeadReceived",
    "ResponseHead",
    "TaskEntry",
    "TransportCoordinator",
    "TransportEvent",
    "HttpxTransport",
    "HTTPTask",
    "TaskState",
    "Transport",
]
