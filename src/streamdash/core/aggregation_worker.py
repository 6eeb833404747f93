"""Run aggregation passes in a worker QThread and hand results back to the GUI.

Requests carry an immutable snapshot of the stream buffer, so nothing the
worker reads can be mutated by the ingestion timer while a pass runs. Every
request is stamped with a monotonic id; :class:`AggregationClient` drops any
reply older than the last one it applied, so a slow pass can never overwrite
a newer summary series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from PySide6.QtCore import QObject, QThread, Signal, Slot

from ..tools.debug import time_block
from .aggregation import aggregate
from .models import FilterConfig, Observation, observations_from_dicts, observations_to_dicts

logger = logging.getLogger(__name__)

__all__ = [
    "AggregationClient",
    "AggregationFailure",
    "AggregationRequest",
    "AggregationResponse",
    "AggregationResult",
    "AggregationWorker",
    "process_message",
    "process_request",
    "response_from_message",
]


@dataclass(frozen=True, slots=True)
class AggregationRequest:
    request_id: int
    data: tuple[Observation, ...]
    config: FilterConfig

    def to_message(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "data": observations_to_dicts(self.data),
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> AggregationRequest:
        return cls(
            request_id=int(message.get("request_id", 0)),
            data=tuple(observations_from_dicts(message["data"])),
            config=FilterConfig.from_dict(message["config"]),
        )


@dataclass(frozen=True, slots=True)
class AggregationResult:
    request_id: int
    data: tuple[Observation, ...]
    elapsed_ms: float = 0.0

    def to_message(self) -> dict[str, Any]:
        return {
            "type": "result",
            "request_id": self.request_id,
            "data": observations_to_dicts(self.data),
        }


@dataclass(frozen=True, slots=True)
class AggregationFailure:
    request_id: int
    error: str

    def to_message(self) -> dict[str, Any]:
        return {"type": "error", "request_id": self.request_id, "error": self.error}


AggregationResponse = Union[AggregationResult, AggregationFailure]


def response_from_message(message: Mapping[str, Any]) -> AggregationResponse:
    kind = message.get("type")
    request_id = int(message.get("request_id", 0))
    if kind == "result":
        return AggregationResult(
            request_id=request_id,
            data=tuple(observations_from_dicts(message.get("data", []))),
        )
    if kind == "error":
        return AggregationFailure(request_id=request_id, error=str(message.get("error", "Unknown error")))
    raise ValueError(f"Unknown aggregation response type {kind!r}")


def process_request(request: AggregationRequest) -> AggregationResponse:
    """
    Run one aggregation pass; never raises.

    Any exception is converted into an :class:`AggregationFailure` so the
    caller keeps displaying its previous series.
    """
    try:
        with time_block(f"aggregate[{len(request.data)} points]") as timing:
            summary = aggregate(request.data, request.config)
    except Exception as exc:
        return AggregationFailure(request_id=request.request_id, error=str(exc) or type(exc).__name__)
    return AggregationResult(request_id=request.request_id, data=tuple(summary), elapsed_ms=timing.elapsed_ms)


def process_message(message: Mapping[str, Any]) -> dict[str, Any]:
    """Wire-format entry point: request mapping in, response mapping out."""
    try:
        request = AggregationRequest.from_message(message)
    except (KeyError, TypeError, ValueError) as exc:
        return AggregationFailure(request_id=-1, error=f"Malformed aggregation request: {exc!r}").to_message()
    return process_request(request).to_message()


class AggregationWorker(QObject):
    """QObject that lives in its own QThread and answers aggregation requests."""

    finished = Signal(object)  # AggregationResponse

    @Slot(object)
    def handle_request(self, request: AggregationRequest) -> None:
        self.finished.emit(process_request(request))


class AggregationClient(QObject):
    """
    Main-thread handle on the aggregation worker.

    ``submit`` never blocks: it stamps the request, posts it to the worker
    thread and returns. Results arrive through :attr:`result_ready`, failures
    through :attr:`processing_error`.
    """

    result_ready = Signal(object)  # list[Observation]
    processing_error = Signal(str)
    _dispatch = Signal(object)

    def __init__(self, parent: QObject | None = None, *, threaded: bool = True) -> None:
        super().__init__(parent)
        self._next_id = 0
        self._last_applied_id = -1
        self._latest: list[Observation] = []
        self._last_processing_ms: Optional[float] = None
        self._dropped_stale = 0
        self._thread: Optional[QThread] = None

        self._worker = AggregationWorker()
        if threaded:
            thread = QThread(self)
            thread.setObjectName("StreamDashAggregation")
            self._worker.moveToThread(thread)
            thread.finished.connect(self._worker.deleteLater)
            thread.start()
            self._thread = thread
        self._dispatch.connect(self._worker.handle_request)
        self._worker.finished.connect(self._on_response)

    # ----------------------------------------------------------------- public
    @property
    def latest(self) -> list[Observation]:
        """Last applied summary series (kept across failures)."""
        return list(self._latest)

    @property
    def last_processing_ms(self) -> Optional[float]:
        return self._last_processing_ms

    @property
    def dropped_stale(self) -> int:
        return self._dropped_stale

    @property
    def is_threaded(self) -> bool:
        return self._thread is not None

    def submit(self, snapshot: Sequence[Observation], config: FilterConfig) -> int:
        """Post a pass over ``snapshot``; returns the request id."""
        request_id = self._next_id
        self._next_id += 1
        self._dispatch.emit(AggregationRequest(request_id=request_id, data=tuple(snapshot), config=config))
        return request_id

    def shutdown(self, timeout_ms: int = 2000) -> None:
        thread = self._thread
        if thread is None:
            return
        self._thread = None
        thread.quit()
        if not thread.wait(timeout_ms):
            logger.warning("Aggregation worker did not stop within %d ms", timeout_ms)

    # ---------------------------------------------------------------- replies
    @Slot(object)
    def _on_response(self, response: AggregationResponse) -> None:
        if response.request_id < self._last_applied_id:
            self._dropped_stale += 1
            logger.debug(
                "Dropping stale aggregation response %d (last applied %d)",
                response.request_id,
                self._last_applied_id,
            )
            return
        self._last_applied_id = response.request_id

        if isinstance(response, AggregationResult):
            self._last_processing_ms = response.elapsed_ms
            self._latest = list(response.data)
            self.result_ready.emit(list(response.data))
        elif isinstance(response, AggregationFailure):
            logger.error("Data processing error: %s", response.error)
            self.processing_error.emit(response.error)
        else:
            raise TypeError(f"Unsupported aggregation response {response!r}")
