import os

import uvicorn

from app.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")

APPS = {
    "internal": "app.main:app",
    "edge": "app.edge_main:app",
}
DEFAULT_PORTS = {
    "internal": 8081,
    "edge": 8080,
}


def resolve_role() -> str:
    """
    Pick which service this process runs. Controlled by:
    - SERVICE_ROLE=internal (default) for the lookup service
    - SERVICE_ROLE=edge for the public-facing forwarder
    """
    role = os.getenv("SERVICE_ROLE", "internal").strip().lower()
    if role not in APPS:
        raise SystemExit(f"Unknown SERVICE_ROLE '{role}'; expected one of {sorted(APPS)}")
    return role


def resolve_port(role: str) -> int:
    """PORT from settings when set, else the role's conventional port."""
    return settings.port or DEFAULT_PORTS[role]


if __name__ == "__main__":
    role = resolve_role()
    setup_logging(level=settings.log_level, job_name=f"{settings.service_name}-{role}")
    port = resolve_port(role)
    logger.info("Starting %s service on port %d", role, port)

    uvicorn.run(
        APPS[role],
        host="0.0.0.0",
        port=port,
        reload=False,
        log_config=None,
    )
