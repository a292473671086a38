"""Process-wide pooled HTTP session shared by the upstream adapters and the edge forwarder."""
from __future__ import annotations

import json
from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter

from app.deadline import Deadline, DeadlineExceeded
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="http")

DEFAULT_POOL_SIZE = 32
USER_AGENT = "cep-weather/0.1"
# One byte per read keeps every read down to a single socket recv.
READ_CHUNK_BYTES = 1


def build_session(pool_size: int = DEFAULT_POOL_SIZE) -> requests.Session:
    """Create a Session with connection pooling and no transport-level retries.

    Retries are decided by the callers; urllib3 must not retry underneath them.
    """
    s = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=0)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    logger.debug("Built pooled HTTP session", extra={"pool_size": pool_size})
    return s


@dataclass(frozen=True)
class FetchedResponse:
    """Status and full body of a response read before its deadline."""
    status_code: int
    reason: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.content)


def _limit_read_timeout(resp: requests.Response, seconds: float) -> None:
    conn = getattr(getattr(resp, "raw", None), "connection", None)
    sock = getattr(conn, "sock", None)
    if sock is not None:
        sock.settimeout(seconds)


def read_within(resp: requests.Response, deadline: Deadline) -> FetchedResponse:
    """Read the body of a streamed response, aborting the call once `deadline` passes.

    `resp` must come from a request sent with stream=True. Before every read
    the socket timeout shrinks to the time left, so a body that trickles in
    cannot hold the call open. The response is always closed; one aborted
    mid-body drops its connection instead of returning it to the pool.
    """
    body = bytearray()
    try:
        chunks = resp.iter_content(chunk_size=READ_CHUNK_BYTES)
        while True:
            left = deadline.remaining()
            if left <= 0.0:
                logger.warning("Deadline passed after %d body bytes; aborting call", len(body))
                raise DeadlineExceeded("deadline passed while reading the response body")
            _limit_read_timeout(resp, left)
            try:
                chunk = next(chunks, None)
            except requests.RequestException as exc:
                if deadline.expired():
                    raise DeadlineExceeded("deadline passed while reading the response body") from exc
                raise
            if chunk is None:
                break
            body.extend(chunk)
    finally:
        resp.close()
    return FetchedResponse(status_code=resp.status_code, reason=resp.reason or "", content=bytes(body))


session = build_session()
