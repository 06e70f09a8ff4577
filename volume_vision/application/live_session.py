from __future__ import annotations

import threading
from collections import deque

from ..domain.camera.camera import FacingMode, Frame, Resolution
from ..domain.camera.camera_repository import CameraRepository, CameraStream
from ..domain.events import (
    ConfidencePublished,
    DetectionsPublished,
    DeviceStateChanged,
    ErrorRaised,
    Notice,
)
from ..domain.session.state import PermissionStatus, SessionState
from ..domain.settings.settings import PipelineSettings
from ..domain.vision.detector import DetectorFactory, ObjectDetector
from ..domain.volume.estimation import Unit, convert_volume, estimate_liquid_level, estimate_volume
from ..shared.bus import EventBus
from ..shared.errors import CameraPermissionError, ModelUnavailableError
from ..shared.validation import parse_choice, parse_percentage
from .poll_detections import DETECTIONS_TOPIC, ERROR_TOPIC, DetectionPoller
from .request_confidence import CONFIDENCE_TOPIC, ConfidenceRequester
from .types import SessionSnapshot

NOTICE_TOPIC = "session.notice"
DEVICE_TOPIC = "device.state"

CAMERA_DENIED = Notice(
    level="error",
    title="Camera Access Denied",
    message="Please allow camera access to use this feature, then retry.",
    persistent=True,
)


class LiveSession:
    """Owns the camera, the detector and every piece of mutable session state.

    The poller and the confidence requester report back through the event bus;
    this class folds their output into ``SessionState`` and decides when each of
    them may run. Displays only ever read a ``SessionSnapshot``.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        camera_repository: CameraRepository,
        detector_factory: DetectorFactory,
        poller: DetectionPoller,
        requester: ConfidenceRequester,
        bus: EventBus,
        logger,
        max_notices: int = 20,
    ) -> None:
        self._settings = settings
        self._camera_repository = camera_repository
        self._detector_factory = detector_factory
        self._poller = poller
        self._requester = requester
        self._bus = bus
        self._logger = logger
        self._lock = threading.RLock()
        self._camera_lock = threading.RLock()
        self._stream: CameraStream | None = None
        self._detector: ObjectDetector | None = None
        self._state = self._initial_state()
        self._alert: Notice | None = None
        self._notices: deque[Notice] = deque(maxlen=max_notices)
        self._confidence_key: tuple | None = None
        self._confidence_sequence = 0
        self._started = False
        self._poller.attach_frame_source(self.capture_frame)

    # ------------------------------------------------------------------
    # Lifecycle
    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
            self._bus.subscribe(DETECTIONS_TOPIC, self._on_detections)
            self._bus.subscribe(CONFIDENCE_TOPIC, self._on_confidence)
            self._bus.subscribe(ERROR_TOPIC, self._on_error)
        self._requester.start()
        self._acquire_camera()
        self._load_detector()
        with self._lock:
            self._reconcile()

    def stop(self) -> None:
        """Tear down workers and the camera, then reset every field."""

        with self._lock:
            if not self._started:
                return
            self._started = False
            self._bus.unsubscribe(DETECTIONS_TOPIC, self._on_detections)
            self._bus.unsubscribe(CONFIDENCE_TOPIC, self._on_confidence)
            self._bus.unsubscribe(ERROR_TOPIC, self._on_error)
        self._poller.stop(timeout=2.0)
        self._requester.stop()
        self._release_camera()
        with self._lock:
            self._detector = None
            self._state = self._initial_state()
            self._alert = None
            self._notices.clear()
            self._confidence_key = None
        self._logger.info("session.stopped")

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # User actions
    def set_detection_enabled(self, enabled: bool) -> None:
        with self._lock:
            if self._state.detection_enabled == bool(enabled):
                return
            self._state.detection_enabled = bool(enabled)
            self._logger.info("session.detection_toggled", enabled=bool(enabled))
            self._reconcile()

    def set_unit(self, unit: Unit | str) -> None:
        value = parse_choice(unit, Unit, "Unit")
        with self._lock:
            self._state.unit = value

    def set_simulated_level(self, level: float) -> None:
        value = parse_percentage(level)
        with self._lock:
            self._state.simulated_level = value
            self._refresh_confidence()

    def set_facing_mode(self, mode: FacingMode | str) -> None:
        """Switch cameras: the current stream is closed before the other one is opened."""

        value = parse_choice(mode, FacingMode, "Facing mode")
        with self._lock:
            if self._state.facing_mode is value:
                return
            self._state.facing_mode = value
            started = self._started
        if not started:
            return
        self._release_camera()
        self._acquire_camera()
        with self._lock:
            self._reconcile()

    def retry_permission(self) -> None:
        with self._lock:
            if not self._started:
                return
        self._release_camera()
        self._acquire_camera()
        with self._lock:
            self._reconcile()

    def report_permission(self, granted: bool) -> None:
        """Record a permission change coming from outside, e.g. a revoked device."""

        with self._lock:
            self._apply_permission(granted)
            self._reconcile()

    # ------------------------------------------------------------------
    # Read side
    def capture_frame(self) -> Frame | None:
        with self._camera_lock:
            stream = self._stream
            if stream is None:
                return None
            return stream.read()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            state = self._state
            level = self._liquid_level()
            volume_ml = estimate_volume(level, self._settings.capacity_ml)
            return SessionSnapshot(
                permission_status=state.permission_status,
                detection_enabled=state.detection_enabled,
                facing_mode=state.facing_mode,
                unit=state.unit,
                simulated_level=state.simulated_level,
                detections=state.detections,
                confidence=state.confidence,
                liquid_level=level,
                volume_ml=volume_ml,
                display_volume=convert_volume(volume_ml, state.unit),
                model_ready=state.model_ready,
                polling=self._poller.active,
                alert=self._alert,
                notices=tuple(self._notices),
            )

    # ------------------------------------------------------------------
    # Camera and model
    def _acquire_camera(self) -> None:
        with self._lock:
            facing_mode = self._state.facing_mode
        resolution = Resolution(self._settings.frame_width, self._settings.frame_height)
        try:
            with self._camera_lock:
                self._stream = self._camera_repository.open(facing_mode, resolution, self._settings.target_fps)
        except CameraPermissionError as exc:
            self._logger.error("session.camera_denied", facing_mode=facing_mode.value, error=str(exc))
            with self._lock:
                self._apply_permission(False)
            return
        self._logger.info("session.camera_opened", facing_mode=facing_mode.value)
        self._bus.publish(DEVICE_TOPIC, DeviceStateChanged(f"Camera opened ({facing_mode.value})"))
        with self._lock:
            self._apply_permission(True)

    def _release_camera(self) -> None:
        with self._camera_lock:
            stream = self._stream
            self._stream = None
            if stream is None:
                return
            try:
                stream.close()
            except Exception:
                self._logger.exception("session.camera_close_failed")
        self._bus.publish(DEVICE_TOPIC, DeviceStateChanged("Camera closed"))

    def _load_detector(self) -> None:
        try:
            detector = self._detector_factory.create(self._settings.model_path, self._settings.device)
        except ModelUnavailableError as exc:
            self._logger.error("session.model_unavailable", error=str(exc))
            self._notify(Notice("error", "Model Load Error", "Could not load the local object detection model."))
            return
        with self._lock:
            self._detector = detector
            self._state.model_ready = True
        self._logger.info("session.model_loaded", labels=len(tuple(detector.labels())))
        self._notify(Notice("info", "Local AI model loaded", "Object detection is now running locally."))

    def _apply_permission(self, granted: bool) -> None:
        status = PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
        if self._state.permission_status is status:
            return
        self._state.permission_status = status
        if granted:
            self._alert = None
        else:
            self._alert = CAMERA_DENIED
            self._bus.publish(NOTICE_TOPIC, CAMERA_DENIED)

    # ------------------------------------------------------------------
    # State folding
    def _reconcile(self) -> None:
        """Start or stop polling so that it runs exactly when all its preconditions hold."""

        state = self._state
        detector = self._detector
        should_poll = (
            self._started
            and state.detection_enabled
            and state.permission_status is PermissionStatus.GRANTED
            and detector is not None
        )
        if should_poll:
            self._poller.start(detector)
        else:
            self._poller.stop()
            state.detections = ()
        self._refresh_confidence()

    def _on_detections(self, event: DetectionsPublished) -> None:
        with self._lock:
            if event.generation != self._poller.generation:
                return
            detections = tuple(event.detections)
            if detections == self._state.detections:
                return
            self._state.detections = detections
            self._refresh_confidence()

    def _on_confidence(self, event: ConfidencePublished) -> None:
        with self._lock:
            if event.sequence < self._confidence_sequence:
                return
            self._confidence_sequence = event.sequence
            self._state.confidence = event.result

    def _on_error(self, event: ErrorRaised) -> None:
        self._notify(Notice("error", "Local AI Error", event.message))

    def _notify(self, notice: Notice) -> None:
        with self._lock:
            self._notices.append(notice)
        self._bus.publish(NOTICE_TOPIC, notice)

    def _refresh_confidence(self) -> None:
        state = self._state
        level = self._liquid_level()
        volume_ml = estimate_volume(level, self._settings.capacity_ml)
        key = (volume_ml, state.detections, state.detection_enabled)
        if key == self._confidence_key:
            return
        self._confidence_key = key
        self._requester.request(
            level=level,
            volume_ml=volume_ml,
            detection_count=len(state.detections),
            detection_enabled=state.detection_enabled,
        )

    def _liquid_level(self) -> float:
        if self._state.detections:
            return estimate_liquid_level(self._state.detections[0].box)
        return self._state.simulated_level

    def _initial_state(self) -> SessionState:
        settings = self._settings
        return SessionState(
            detection_enabled=settings.detection_enabled,
            facing_mode=settings.initial_facing_mode,
            unit=settings.initial_unit,
            simulated_level=settings.initial_level,
        )
