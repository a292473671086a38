"""FastAPI application for the edge service."""

from fastapi import FastAPI

from .edge_api import router as edge_router
from .web import install_common

app = FastAPI(title="CEP Weather Edge")

install_common(app)

app.include_router(edge_router)
