from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ...app.container import ApplicationContainer
from ...application.live_session import LiveSession
from ..schemas import (
    DetectionToggleRequestModel,
    FacingModeRequestModel,
    LevelRequestModel,
    SessionSnapshotModel,
    UnitRequestModel,
)
from .controller_base import ControllerBase


class SessionController(ControllerBase):
    """REST endpoints reading and steering the live session."""

    def __init__(self) -> None:
        super().__init__()

        @self.router.get("", response_model=SessionSnapshotModel, summary="Current session snapshot")
        @inject
        def snapshot(
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            return SessionSnapshotModel.from_snapshot(session.snapshot())

        @self.router.post("/detection", response_model=SessionSnapshotModel, summary="Turn detection on or off")
        @inject
        def toggle_detection(
            request: DetectionToggleRequestModel,
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            self.guard(lambda: session.set_detection_enabled(request.enabled))
            return SessionSnapshotModel.from_snapshot(session.snapshot())

        @self.router.post("/unit", response_model=SessionSnapshotModel, summary="Change the display unit")
        @inject
        def change_unit(
            request: UnitRequestModel,
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            self.guard(lambda: session.set_unit(request.unit))
            return SessionSnapshotModel.from_snapshot(session.snapshot())

        @self.router.post("/facing-mode", response_model=SessionSnapshotModel, summary="Switch camera")
        @inject
        def change_facing_mode(
            request: FacingModeRequestModel,
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            self.guard(lambda: session.set_facing_mode(request.facing_mode))
            return SessionSnapshotModel.from_snapshot(session.snapshot())

        @self.router.post("/level", response_model=SessionSnapshotModel, summary="Move the simulation slider")
        @inject
        def change_level(
            request: LevelRequestModel,
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            self.guard(lambda: session.set_simulated_level(request.level))
            return SessionSnapshotModel.from_snapshot(session.snapshot())

        @self.router.post("/permission/retry", response_model=SessionSnapshotModel, summary="Request the camera again")
        @inject
        def retry_permission(
            session: LiveSession = Depends(Provide[ApplicationContainer.live_session]),
        ) -> SessionSnapshotModel:
            session.retry_permission()
            return SessionSnapshotModel.from_snapshot(session.snapshot())
