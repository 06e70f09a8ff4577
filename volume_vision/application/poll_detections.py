from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ..domain.camera.camera import Frame
from ..domain.events import DetectionsPublished, ErrorRaised
from ..domain.vision.detector import ObjectDetector
from ..domain.vision.model import DetectedObject
from ..domain.vision.normalization import select_glasses
from ..shared.bus import EventBus
from ..shared.scheduling import IntervalScheduler

DETECTIONS_TOPIC = "vision.detections"
ERROR_TOPIC = "errors"

FrameSource = Callable[[], "Frame | None"]


@dataclass
class _PollRun:
    detector: ObjectDetector
    generation: int
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None


class DetectionPoller:
    """Ask the detector for glasses on the current frame at a fixed cadence.

    At most one run is active. Stopping a run does not wait for an in-flight
    detector call; its result is dropped because the run generation changed.
    """

    def __init__(
        self,
        bus: EventBus,
        logger,
        *,
        accepted_labels: Sequence[str] = ("cup", "wine glass"),
        score_threshold: float = 0.5,
        interval: float = 1.0,
    ) -> None:
        self._frame_source: FrameSource | None = None
        self._bus = bus
        self._logger = logger
        self._accepted_labels = tuple(accepted_labels)
        self._score_threshold = score_threshold
        self._interval = interval
        self._lock = threading.RLock()
        self._poll_guard = threading.Lock()
        self._run: _PollRun | None = None
        self._generation = 0
        self._latest: tuple[DetectedObject, ...] = ()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._run is not None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def attach_frame_source(self, frame_source: FrameSource) -> None:
        self._frame_source = frame_source

    def latest(self) -> tuple[DetectedObject, ...]:
        return self._latest

    def busy(self) -> bool:
        return self._poll_guard.locked()

    def start(self, detector: ObjectDetector) -> bool:
        """Begin polling with ``detector``; returns ``False`` if a run is already active."""

        with self._lock:
            if self._run is not None:
                return False
            self._generation += 1
            run = _PollRun(detector=detector, generation=self._generation)
            run.thread = threading.Thread(
                target=self._loop,
                args=(run,),
                daemon=True,
                name=f"DetectionPoller-{run.generation}",
            )
            self._run = run
            run.thread.start()
        self._logger.info("poller.started", interval=self._interval, generation=run.generation)
        return True

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the active run; join its worker only when ``timeout`` is given."""

        with self._lock:
            run = self._run
            if run is None:
                return
            self._run = None
            self._generation += 1
            run.stop_event.set()
            self._latest = ()
            generation = self._generation
        self._bus.publish(DETECTIONS_TOPIC, DetectionsPublished((), generation))
        self._logger.info("poller.stopped", generation=run.generation)
        if timeout is not None and run.thread is not None and run.thread is not threading.current_thread():
            run.thread.join(timeout=timeout)

    def poll_once(self) -> bool:
        """Run a single detection pass now; returns ``False`` if skipped.

        A pass is skipped when polling is idle or another pass is still in flight.
        """

        with self._lock:
            run = self._run
        if run is None:
            return False
        if not self._poll_guard.acquire(blocking=False):
            self._logger.debug("poller.tick_skipped", reason="in-flight")
            return False
        try:
            self._poll(run)
        finally:
            self._poll_guard.release()
        return True

    def _loop(self, run: _PollRun) -> None:
        scheduler = IntervalScheduler(self._interval)
        while not run.stop_event.is_set():
            run.stop_event.wait(timeout=scheduler.timeout())
            if run.stop_event.is_set():
                break
            if scheduler.skip_if(not self._poll_guard.acquire(blocking=False)):
                continue
            try:
                self._poll(run)
            finally:
                self._poll_guard.release()
            scheduler.executed()

    def _poll(self, run: _PollRun) -> None:
        frame = self._frame_source() if self._frame_source is not None else None
        if frame is None:
            self._replace((), run)
            return
        try:
            raw = run.detector.detect(frame)
            glasses = select_glasses(
                raw,
                frame.width,
                frame.height,
                accepted_labels=self._accepted_labels,
                score_threshold=self._score_threshold,
            )
        except Exception as exc:
            if not self._replace((), run):
                return
            self._logger.exception("poller.poll_failed", exc_info=exc)
            self._bus.publish(ERROR_TOPIC, ErrorRaised(f"Could not perform object detection: {exc}", exc))
            return

        if not self._replace(glasses, run):
            self._logger.debug("poller.result_dropped", generation=run.generation)
            return
        self._logger.debug("poller.detections", count=len(glasses), labels=[g.label for g in glasses])

    def _replace(self, detections: tuple[DetectedObject, ...], run: _PollRun | None = None) -> bool:
        """Swap in a new detection set and publish it tagged with the current generation.

        With ``run`` given, nothing happens unless that run is still the active one.
        """

        with self._lock:
            if run is not None and (self._run is not run or run.stop_event.is_set()):
                return False
            generation = self._generation
            self._latest = detections
        self._bus.publish(DETECTIONS_TOPIC, DetectionsPublished(detections, generation))
        return True
