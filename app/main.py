"""FastAPI application for the internal CEP weather lookup service."""

from fastapi import FastAPI

from .api import router as api_router
from .web import install_common

app = FastAPI(title="CEP Weather Lookup")

install_common(app)

# API routes
app.include_router(api_router)
