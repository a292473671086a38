"""HTTP API for the internal lookup service."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.domain import LookupOutcome
from app.web import ERROR_RESPONSES, CepRequest, WeatherResponse
from .config import settings
from .orchestrator import build_orchestrator
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/api")

router = APIRouter()
ORCHESTRATOR = build_orchestrator(settings)


def _respond(outcome: LookupOutcome) -> JSONResponse:
    """Encode an outcome with the status its failure kind maps to."""
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_payload())


@router.get("/weather/{cep}", response_model=WeatherResponse, responses=ERROR_RESPONSES)
def get_weather_by_cep(cep: str):
    """Look up the weather for a CEP given in the path."""
    logger.info("GET weather for CEP %s", cep)
    return _respond(ORCHESTRATOR.handle(cep))


@router.post("/weather", response_model=WeatherResponse, responses=ERROR_RESPONSES)
def post_weather(req: CepRequest):
    """Look up the weather for a CEP given in the JSON body."""
    logger.info("POST weather for CEP %s", req.cep)
    return _respond(ORCHESTRATOR.handle(req.cep))
