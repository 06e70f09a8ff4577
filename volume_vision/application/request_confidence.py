from __future__ import annotations

import threading
from dataclasses import dataclass

from ..domain.confidence.service import (
    ConfidenceRequest,
    ConfidenceResult,
    ConfidenceService,
    describe_water_line,
)
from ..domain.events import ConfidencePublished
from ..shared.bus import EventBus

CONFIDENCE_TOPIC = "vision.confidence"


@dataclass(frozen=True)
class _Pending:
    sequence: int
    request: ConfidenceRequest


class ConfidenceRequester:
    """Best-effort confidence scoring for the latest volume reading.

    Requests are not queued: while one call is in flight only the newest trigger is
    kept, and a response is published only if no newer request was issued after it.
    Failures publish ``None`` and never reach the caller.
    """

    def __init__(
        self,
        service: ConfidenceService,
        bus: EventBus,
        logger,
        *,
        glass_shape: str = "Cylinder",
        debounce: float = 0.25,
    ) -> None:
        self._service = service
        self._bus = bus
        self._logger = logger
        self._glass_shape = glass_shape
        self._debounce = debounce
        self._condition = threading.Condition()
        self._pending: _Pending | None = None
        self._issued = 0
        self._stop_event = threading.Event()
        self._worker: threading.Thread | None = None
        self._inflight = threading.Event()

    def busy(self) -> bool:
        return self._inflight.is_set()

    def start(self) -> None:
        """Launch a worker; a restart never revives a worker that was told to stop."""

        with self._condition:
            if self._worker is not None and not self._stop_event.is_set():
                return
            stop_event = threading.Event()
            worker = threading.Thread(target=self._run, args=(stop_event,), name="ConfidenceRequester", daemon=True)
            self._stop_event = stop_event
            self._worker = worker
        worker.start()

    def stop(self, timeout: float | None = 2.0) -> None:
        with self._condition:
            self._stop_event.set()
            self._issued += 1
            self._pending = None
            self._condition.notify_all()
            worker = self._worker
            self._worker = None
        if worker and worker is not threading.current_thread() and timeout is not None:
            worker.join(timeout=timeout)

    def request(self, *, level: float, volume_ml: float, detection_count: int, detection_enabled: bool) -> int:
        """Issue a request for the current reading and return its sequence number.

        With detection disabled or nothing detected, ``None`` is published right away
        and any in-flight response is invalidated.
        """

        with self._condition:
            self._issued += 1
            sequence = self._issued
            inapplicable = not detection_enabled or detection_count <= 0
            if inapplicable:
                self._pending = None
            else:
                self._pending = _Pending(
                    sequence=sequence,
                    request=ConfidenceRequest(
                        glass_shape=self._glass_shape,
                        water_line_consistency=describe_water_line(level, self._glass_shape),
                        volume_estimate=volume_ml,
                    ),
                )
                self._condition.notify_all()
        if inapplicable:
            self._bus.publish(CONFIDENCE_TOPIC, ConfidencePublished(None, sequence))
        return sequence

    def execute(
        self,
        sequence: int,
        request: ConfidenceRequest,
        stop_event: threading.Event | None = None,
    ) -> ConfidenceResult | None:
        """Call the service for one request and publish the outcome if still current.

        ``stop_event`` is the calling worker's own event; a stopped worker never publishes.
        """

        self._inflight.set()
        try:
            result: ConfidenceResult | None = self._service.score(request)
        except Exception as exc:
            self._logger.warning("confidence.request_failed", sequence=sequence, error=str(exc))
            result = None
        finally:
            self._inflight.clear()

        with self._condition:
            stopped = (stop_event or self._stop_event).is_set()
            current = sequence == self._issued and not stopped
        if not current:
            self._logger.debug("confidence.response_discarded", sequence=sequence)
            return None
        self._bus.publish(CONFIDENCE_TOPIC, ConfidencePublished(result, sequence))
        return result

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            with self._condition:
                while self._pending is None and not stop_event.is_set():
                    self._condition.wait(timeout=0.5)
                if stop_event.is_set():
                    break
            if self._debounce > 0 and stop_event.wait(timeout=self._debounce):
                break
            with self._condition:
                pending = self._pending
                self._pending = None
            if pending is None:
                continue
            self.execute(pending.sequence, pending.request, stop_event)
