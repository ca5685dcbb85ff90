# tests/test_fetcher.py
"""
Tests para colaw.legal.fetcher: rate limit, reintentos, TLS inseguro.
Sin red: la sesion requests es un MagicMock y los sleeps se registran.
"""
from __future__ import annotations

import os
import warnings
from unittest.mock import MagicMock, patch

import pytest
import requests
import urllib3
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from colaw.legal import fetcher
from colaw.legal.fetcher import (
    FetchError,
    GestorNormativoClient,
    RateLimiter,
    build_norma_url,
    build_search_url,
    decode_body,
)
from colaw.legal.models import TargetLaw
from colaw.legal.norma_parser import parse_norma_html


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _response(status: int, body: str = "<html></html>", url: str = "https://example/norma.php?i=1"):
    resp = MagicMock()
    resp.status_code = status
    resp.text = body
    resp.headers = {"content-type": "text/html; charset=utf-8"}
    resp.url = url
    return resp


def _client(responses, max_retries=3):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = responses
    backoffs = []
    limiter = RateLimiter(min_interval_ms=0)
    client = GestorNormativoClient(
        limiter=limiter,
        max_retries=max_retries,
        session=session,
        sleep=backoffs.append,
        insecure_tls=False,
    )
    return client, session, backoffs


# ── URLs ─────────────────────────────────────────────────────────────────────

class TestUrls:
    def test_norma_url(self):
        assert build_norma_url(49981) == (
            "https://www.funcionpublica.gov.co/eva/gestornormativo/norma.php?i=49981"
        )

    def test_search_url(self):
        url = build_search_url(18, 2)
        assert "t=ejecuta_busqueda_avanzada2" in url
        assert "tipdoc=18" in url
        assert url.endswith("pagina=2")


# ── RateLimiter ──────────────────────────────────────────────────────────────

class TestRateLimiter:
    def test_first_request_does_not_wait(self):
        clock = FakeClock()
        limiter = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        limiter.wait()
        assert clock.sleeps == []

    def test_waits_remaining_interval(self):
        clock = FakeClock()
        limiter = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        limiter.wait()
        clock.now += 0.2
        limiter.wait()
        assert clock.sleeps == [pytest.approx(1.0)]

    def test_no_wait_after_interval_elapsed(self):
        clock = FakeClock()
        limiter = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        limiter.wait()
        clock.now += 5
        limiter.wait()
        assert clock.sleeps == []

    def test_independent_instances(self):
        clock = FakeClock()
        a = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        b = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        a.wait()
        b.wait()
        assert clock.sleeps == []

    def test_shared_limiter_paces_every_request(self):
        clock = FakeClock()
        limiter = RateLimiter(1200, clock=clock, sleep=clock.sleep)
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = [_response(200), _response(200), _response(200)]
        client = GestorNormativoClient(limiter=limiter, session=session, insecure_tls=False)
        client.fetch_norma(1)
        client.fetch_norma(2)
        client.fetch_norma(3)
        assert clock.sleeps == [pytest.approx(1.2), pytest.approx(1.2)]


# ── Retry policy ─────────────────────────────────────────────────────────────

class TestFetchRetries:
    def test_success_first_try(self):
        client, session, backoffs = _client([_response(200, "<p>ok</p>")])
        result = client.fetch("https://example/a")
        assert result.status == 200
        assert result.body == "<p>ok</p>"
        assert result.content_type.startswith("text/html")
        assert result.url == "https://example/norma.php?i=1"
        assert backoffs == []

    def test_retry_on_503_then_success(self):
        client, session, backoffs = _client([_response(503), _response(200)])
        result = client.fetch("https://example/a")
        assert result.status == 200
        assert backoffs == [2.0]
        assert session.get.call_count == 2

    def test_exponential_backoff(self):
        client, _, backoffs = _client([_response(500), _response(502), _response(429), _response(200)])
        client.fetch("https://example/a")
        assert backoffs == [2.0, 4.0, 8.0]

    def test_429_exhausts_retries(self):
        client, session, backoffs = _client([_response(429)] * 3, max_retries=2)
        with pytest.raises(FetchError, match="retries exhausted") as exc_info:
            client.fetch("https://example/a")
        assert exc_info.value.status == 429
        assert exc_info.value.attempts == 3
        assert session.get.call_count == 3
        assert backoffs == [2.0, 4.0]

    def test_404_returned_without_retry(self):
        client, session, backoffs = _client([_response(404)])
        result = client.fetch("https://example/a")
        assert result.status == 404
        assert backoffs == []
        assert session.get.call_count == 1

    def test_transport_error_retried(self):
        client, _, backoffs = _client([requests.ConnectionError("reset"), _response(200)])
        assert client.fetch("https://example/a").status == 200
        assert backoffs == [2.0]

    def test_transport_error_exhausted(self):
        client, _, _ = _client([requests.Timeout("slow")] * 2, max_retries=1)
        with pytest.raises(FetchError) as exc_info:
            client.fetch("https://example/a")
        assert exc_info.value.status is None
        assert "slow" in str(exc_info.value)

    def test_request_headers(self):
        client, session, _ = _client([_response(200)])
        client.fetch_norma(49981)
        args, kwargs = session.get.call_args
        assert args[0].endswith("norma.php?i=49981")
        assert kwargs["headers"]["Accept"] == "text/html, */*"
        assert kwargs["allow_redirects"] is True
        assert session.headers["Accept-Language"].startswith("es-CO")
        assert "colaw" in session.headers["User-Agent"]


# ── TLS inseguro ─────────────────────────────────────────────────────────────

class TestInsecureTls:
    def test_default_verifies_certificates(self):
        session = MagicMock()
        session.headers = {}
        session.verify = True
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("ALLOW_INSECURE_TLS", None)
            client = GestorNormativoClient(session=session)
        assert client.insecure_tls is False
        assert session.verify is True

    @patch.dict(os.environ, {"ALLOW_INSECURE_TLS": "1"}, clear=False)
    def test_env_opt_in_disables_verify(self, caplog):
        fetcher._insecure_notice_shown = False
        session = MagicMock()
        session.headers = {}
        with caplog.at_level("WARNING", logger="colaw.legal.fetcher"):
            client = GestorNormativoClient(session=session)
            GestorNormativoClient(session=MagicMock(headers={}))
        assert client.insecure_tls is True
        assert session.verify is False
        notices = [r for r in caplog.records if "ALLOW_INSECURE_TLS" in r.getMessage()]
        assert len(notices) == 1

    def test_insecure_warning_scoped_to_requests(self):
        session = MagicMock()
        session.headers = {}

        def get(*args, **kwargs):
            warnings.warn("Unverified HTTPS request", urllib3.exceptions.InsecureRequestWarning)
            return _response(200)

        session.get.side_effect = get
        client = GestorNormativoClient(
            limiter=RateLimiter(0), session=session, insecure_tls=True,
        )
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            client.fetch("https://example/a")
            assert caught == []
            warnings.warn("otro cliente", urllib3.exceptions.InsecureRequestWarning)
        assert len(caught) == 1


# ── Decodificacion del body ──────────────────────────────────────────────────

def _raw_response(content: bytes, content_type: str) -> requests.Response:
    """Response armado como lo hace HTTPAdapter.build_response."""
    resp = requests.Response()
    resp.status_code = 200
    resp._content = content
    resp.headers = CaseInsensitiveDict({"Content-Type": content_type})
    resp.encoding = get_encoding_from_headers(resp.headers)
    resp.url = "https://example/norma.php?i=1"
    return resp


class TestDecodeBody:
    PAGE = '<div class="descripcion-contenido"><p>Artículo 1°. Objeto. Texto del objeto de la ley.</p></div>'

    def test_utf8_without_charset(self):
        resp = _raw_response(self.PAGE.encode("utf-8"), "text/html")
        assert resp.encoding == "ISO-8859-1"
        assert decode_body(resp) == self.PAGE

    def test_header_charset_respected(self):
        resp = _raw_response(self.PAGE.encode("latin-1"), "text/html; charset=ISO-8859-1")
        assert decode_body(resp) == self.PAGE

    def test_meta_charset_used_when_header_silent(self):
        html = '<meta charset="iso-8859-1">' + self.PAGE
        resp = _raw_response(html.encode("latin-1"), "text/html")
        assert decode_body(resp) == html

    def test_unknown_meta_charset_falls_back(self):
        html = '<meta charset="x-inventado">hola'
        resp = _raw_response(html.encode("ascii"), "text/html")
        assert decode_body(resp) == html

    def test_fetch_norma_keeps_provisions(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = _raw_response(self.PAGE.encode("utf-8"), "text/html")
        client = GestorNormativoClient(limiter=RateLimiter(0), session=session, insecure_tls=False)

        fetched = client.fetch_norma(1)
        assert "Artículo 1°" in fetched.body

        law = TargetLaw(
            id="co-ley-1-2000", file_name="a.json", portal_id=1, doc_type_id=18,
            short_name="Ley 1 de 2000", status="in_force",
        )
        act = parse_norma_html(fetched.body, law)
        assert [p.provision_ref for p in act.provisions] == ["art1"]
