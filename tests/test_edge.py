import json
import unittest

import requests
from fastapi.testclient import TestClient

from app.config import Settings
from app.edge import EdgeForwarder, build_forwarder
from app.edge_main import app as edge_app
from app.tracing import Tracer


class DummyResp:
    def __init__(self, content: bytes, status_code: int):
        self.content = content
        self.status_code = status_code
        self.reason = "OK"

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        pass


class DummySession:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout, "stream": stream})
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class RecordingTracer(Tracer):
    def __init__(self):
        super().__init__("edge-test")
        self.spans = []

    def on_finish(self, span):
        self.spans.append(span)


INTERNAL_URL = "http://internal.test:8081/weather"
SUCCESS_BODY = b'{"city":"Rio de Janeiro","temp_C":25,"temp_F":77,"temp_K":298.15}'


class TestEdgeForwarder(unittest.TestCase):
    def setUp(self):
        self.tracer = RecordingTracer()

    def _forwarder(self, session):
        return EdgeForwarder(INTERNAL_URL, session=session, tracer=self.tracer, timeout_seconds=7)

    def test_invalid_zipcode_is_rejected_without_a_call(self):
        session = DummySession(DummyResp(SUCCESS_BODY, 200))
        body, status = self._forwarder(session).forward("123")
        self.assertEqual(status, 422)
        self.assertEqual(body, b'{"error":"invalid zipcode"}')
        self.assertEqual(session.calls, [])

    def test_forwards_normalized_code(self):
        session = DummySession(DummyResp(SUCCESS_BODY, 200))
        body, status = self._forwarder(session).forward("22450-000")

        self.assertEqual((body, status), (SUCCESS_BODY, 200))
        call = session.calls[0]
        self.assertEqual(call["url"], INTERNAL_URL)
        self.assertEqual(call["json"], {"cep": "22450000"})
        self.assertTrue(call["stream"])
        self.assertLessEqual(call["timeout"], 7)
        self.assertGreater(call["timeout"], 6)

    def test_relays_failures_verbatim(self):
        for status, body in (
            (404, b'{"error":"can not find zipcode"}'),
            (500, b'{"error":"failed to get weather data"}'),
            (503, b"upstream overloaded"),
        ):
            with self.subTest(status=status):
                session = DummySession(DummyResp(body, status))
                self.assertEqual(self._forwarder(session).forward("99999999"), (body, status))

    def test_transport_failure_is_500(self):
        session = DummySession(requests.ConnectionError("connection refused"))
        body, status = self._forwarder(session).forward("22450000")
        self.assertEqual(status, 500)
        self.assertTrue(json.loads(body)["error"].startswith("error calling weather service"))
        self.assertFalse(self.tracer.spans[-1].ok)

    def test_propagates_trace_headers(self):
        session = DummySession(DummyResp(SUCCESS_BODY, 200))
        self._forwarder(session).forward("22450000")

        span = self.tracer.spans[-1]
        headers = session.calls[0]["headers"]
        self.assertEqual(headers["X-Trace-ID"], span.trace_id)
        self.assertEqual(headers["X-Parent-Span-ID"], span.span_id)
        self.assertEqual(span.attributes["http.status_code"], 200)

    def test_build_forwarder_from_settings(self):
        settings = Settings(internal_service_url="http://svc-b:8081/weather/", forward_timeout_seconds=3)
        forwarder = build_forwarder(settings)
        self.assertEqual(forwarder.internal_url, "http://svc-b:8081/weather")
        self.assertEqual(forwarder.timeout_seconds, 3)


class TestEdgeApi(unittest.TestCase):
    def setUp(self):
        import app.edge_api as edge_api_mod

        self.mod = edge_api_mod
        self._orig_forwarder = edge_api_mod.FORWARDER
        self.client = TestClient(edge_app)

    def tearDown(self):
        self.mod.FORWARDER = self._orig_forwarder

    def _use(self, session):
        self.mod.FORWARDER = EdgeForwarder(INTERNAL_URL, session=session, tracer=RecordingTracer())

    def test_relays_internal_response(self):
        self._use(DummySession(DummyResp(SUCCESS_BODY, 200)))
        resp = self.client.post("/weather", json={"cep": "22450000"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, SUCCESS_BODY)
        self.assertEqual(resp.headers["content-type"], "application/json")

    def test_not_found_relayed(self):
        self._use(DummySession(DummyResp(b'{"error":"can not find zipcode"}', 404)))
        resp = self.client.post("/weather", json={"cep": "99999999"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "can not find zipcode"})

    def test_invalid_zipcode_422(self):
        session = DummySession(DummyResp(SUCCESS_BODY, 200))
        self._use(session)
        resp = self.client.post("/weather", json={"cep": "123"})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json(), {"error": "invalid zipcode"})
        self.assertEqual(session.calls, [])

    def test_malformed_body_400(self):
        self._use(DummySession(DummyResp(SUCCESS_BODY, 200)))
        resp = self.client.post("/weather", content=b"nope", headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid request format"})

    def test_get_not_routed(self):
        resp = self.client.get("/weather")
        self.assertEqual(resp.status_code, 405)

    def test_incoming_trace_id_forwarded(self):
        session = DummySession(DummyResp(SUCCESS_BODY, 200))
        self._use(session)
        resp = self.client.post("/weather", json={"cep": "22450000"}, headers={"X-Trace-ID": "trace-from-client"})
        self.assertEqual(resp.headers["X-Trace-ID"], "trace-from-client")
        self.assertEqual(session.calls[0]["headers"]["X-Trace-ID"], "trace-from-client")


if __name__ == "__main__":
    unittest.main()
