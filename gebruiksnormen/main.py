"""
FastAPI application for the gebruiksnormen calculator.
"""
from fastapi import FastAPI
import logging

from gebruiksnormen.core.config import LOG_LEVEL, PACKAGE_VERSION
from gebruiksnormen.routers import norms


def create_app() -> FastAPI:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="Gebruiksnormen API",
        description="Dutch nitrogen, phosphate and animal manure application norms",
        version=PACKAGE_VERSION,
    )
    app.include_router(norms.router)
    return app


app = create_app()
