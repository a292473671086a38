"""Pieces shared by the edge and internal FastAPI applications."""

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.errors import MalformedRequestError
from app.tracing import TraceContextMiddleware
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/web")


class CepRequest(BaseModel):
    """Inbound body for POST /weather on both services."""
    cep: str = ""


class ErrorResponse(BaseModel):
    error: str


class WeatherResponse(BaseModel):
    """Successful lookup body."""
    city: str
    temp_C: float
    temp_F: float
    temp_K: float


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed request body"},
    404: {"model": ErrorResponse, "description": "Zipcode or city not found"},
    422: {"model": ErrorResponse, "description": "Invalid zipcode"},
    500: {"model": ErrorResponse, "description": "Upstream or configuration failure"},
}

health_router = APIRouter()


@health_router.get("/health")
def health():
    """Liveness check."""
    return {"status": "ok"}


async def malformed_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Unparsable bodies are a 400; 422 is reserved for a well-formed but invalid zipcode."""
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    failure = MalformedRequestError()
    return JSONResponse(status_code=failure.status_code, content=failure.to_payload())


def install_common(app: FastAPI) -> None:
    """Attach trace propagation, the malformed-body handler and /health."""
    app.add_middleware(TraceContextMiddleware)
    app.add_exception_handler(RequestValidationError, malformed_request_handler)
    app.include_router(health_router)
