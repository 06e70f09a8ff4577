from typing import Callable, List, Optional

from fastapi import HTTPException, status
from fastapi.routing import APIRouter

from ...shared.validation import ValidationError


class ControllerBase:
    """Gives each controller a router prefixed with its name, e.g. ``/Session``."""

    def __init__(self, prefix: Optional[str] = None, tags: Optional[List[str]] = None):
        name = self.__class__.__name__.removesuffix("Controller")
        prefix = f"/{name}" if prefix is None else "/" + prefix.strip("/")
        self.router = APIRouter(prefix=prefix, tags=[*(tags or []), name])

    @staticmethod
    def guard(action: Callable[[], None]) -> None:
        """Run a session command, turning rejected input into ``400 Bad Request``."""

        try:
            action()
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
