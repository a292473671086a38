"""HTTP API for the edge service."""

from fastapi import APIRouter, Response

from app.web import ERROR_RESPONSES, CepRequest, WeatherResponse
from .config import settings
from .edge import build_forwarder
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/edge_api")

router = APIRouter()
FORWARDER = build_forwarder(settings)


@router.post("/weather", response_model=WeatherResponse, responses=ERROR_RESPONSES)
def post_weather(req: CepRequest):
    """Forward a CEP lookup to the internal service and relay its answer."""
    logger.info("Edge received CEP %s", req.cep)
    body, status_code = FORWARDER.forward(req.cep)
    return Response(content=body, status_code=status_code, media_type="application/json")
