from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app.container import ApplicationContainer
from .controller_loader import ControllerLoader

APP_NAME = "Volume Vision"
APP_VERSION = "0.1.0"


def create_app(container: ApplicationContainer | None = None) -> FastAPI:
    container = container or ApplicationContainer()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        container.logging()
        session = container.live_session()
        session.start()
        try:
            yield
        finally:
            session.stop()
            container.shutdown_resources()

    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.container = container

    ControllerLoader.auto_register_controllers(app=app, container=container)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
