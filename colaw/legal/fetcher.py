# colaw/legal/fetcher.py
"""
Cliente HTTP con rate limit para el Gestor Normativo.

Fuente principal:
  https://www.funcionpublica.gov.co/eva/gestornormativo/norma.php?i={ID}

  - minimo 1200 ms entre requests (un solo limitador para todo el proceso)
  - reintento en errores transitorios (429 / 5xx / transporte), backoff 2^(n+1) s
  - ALLOW_INSECURE_TLS=1 desactiva la verificacion de certificados SOLO en
    la sesion de este cliente (el aviso de urllib3 se silencia solo alrededor
    de sus requests)
  - sin charset en Content-Type: meta charset del HTML, si no UTF-8
"""
from __future__ import annotations

import logging
import re
import time
import warnings
from dataclasses import dataclass
from typing import Callable, Optional

import requests
import urllib3

from colaw.config import settings

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
NORMA_ACCEPT = "text/html, */*"

_insecure_notice_shown = False


class FetchError(RuntimeError):
    """Descarga fallida despues de agotar los reintentos."""

    def __init__(self, url: str, message: str, status: Optional[int] = None, attempts: int = 0):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url
        self.status = status
        self.attempts = attempts


@dataclass
class FetchResult:
    """Respuesta HTTP ya decodificada."""
    status: int
    body: str
    content_type: str
    url: str


def build_norma_url(portal_id: int) -> str:
    return f"{settings.PORTAL_BASE_URL}/norma.php?i={portal_id}"


def build_search_url(doc_type_id: int, page: int = 1) -> str:
    return (
        f"{settings.SEARCH_ENDPOINT}"
        f"?t=ejecuta_busqueda_avanzada2&tipdoc={doc_type_id}&pagina={page}"
    )


_RE_META_CHARSET = re.compile(r'charset[="\s]+([a-zA-Z0-9\-_]+)')


def _detect_encoding(content: bytes, content_type: str) -> Optional[str]:
    """Encoding del header; si falta, meta charset del HTML; si no, UTF-8."""
    if "charset" in content_type.lower():
        return None

    head = content[:2048].decode("ascii", errors="ignore").lower()
    m = _RE_META_CHARSET.search(head)
    if m:
        return m.group(1).strip()

    return "utf-8"


def decode_body(resp: requests.Response) -> str:
    """
    Texto de la respuesta.

    Sin charset en el header, requests asume ISO-8859-1 para text/*;
    el portal sirve UTF-8, asi que en ese caso se decodifica aparte.
    """
    encoding = _detect_encoding(resp.content or b"", resp.headers.get("content-type", ""))
    if encoding is None:
        return resp.text
    try:
        return resp.content.decode(encoding, errors="replace")
    except LookupError:
        logger.debug("decode_body: encoding desconocido '%s', usando latin-1", encoding)
        return resp.content.decode("latin-1", errors="replace")


class RateLimiter:
    """Garantiza un intervalo minimo entre el inicio de dos requests."""

    def __init__(
        self,
        min_interval_ms: int = settings.MIN_DELAY_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = max(0, min_interval_ms) / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None

    def wait(self) -> None:
        if self._last_request is not None:
            elapsed = self._clock() - self._last_request
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_request = self._clock()


# Limitador compartido por los clientes que no reciben uno propio
_default_limiter = RateLimiter()


def _warn_insecure_once() -> None:
    global _insecure_notice_shown
    if not _insecure_notice_shown:
        logger.warning("ALLOW_INSECURE_TLS=1 activo para la sesion de ingestion (sin verificacion TLS)")
        _insecure_notice_shown = True


class GestorNormativoClient:
    """Cliente secuencial del portal: un request a la vez, pasando siempre por el limitador."""

    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        max_retries: int = settings.MAX_RETRIES,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        timeout: int = settings.HTTP_TIMEOUT_SECONDS,
        insecure_tls: Optional[bool] = None,
    ):
        self.limiter = limiter or _default_limiter
        self.max_retries = max(0, max_retries)
        self.timeout = timeout
        self._sleep = sleep

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": settings.USER_AGENT,
            "Accept-Language": settings.ACCEPT_LANGUAGE,
        })

        if insecure_tls is None:
            insecure_tls = settings.insecure_tls_enabled()
        self.insecure_tls = insecure_tls
        if insecure_tls:
            _warn_insecure_once()
            self.session.verify = False

    def _backoff(self, attempt: int) -> float:
        return float(2 ** (attempt + 1))

    def fetch(self, url: str, accept: Optional[str] = None) -> FetchResult:
        """
        GET con rate limit y reintentos.

        Returns:
            FetchResult para cualquier status no transitorio (200, 404, ...)

        Raises:
            FetchError si 429/5xx o error de transporte persisten tras max_retries
        """
        headers = {"Accept": accept or DEFAULT_ACCEPT}
        total = self.max_retries + 1

        for attempt in range(total):
            self.limiter.wait()
            try:
                with warnings.catch_warnings():
                    if self.insecure_tls:
                        warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
                    resp = self.session.get(
                        url, headers=headers, timeout=self.timeout, allow_redirects=True,
                    )
            except requests.RequestException as e:
                if attempt < self.max_retries:
                    backoff = self._backoff(attempt)
                    logger.warning("Error de red para %s (%s), reintento en %.0fs", url, e, backoff)
                    self._sleep(backoff)
                    continue
                raise FetchError(url, f"{e} (retries exhausted)", attempts=total) from e

            status = resp.status_code
            if status == 429 or status >= 500:
                if attempt < self.max_retries:
                    backoff = self._backoff(attempt)
                    logger.warning("HTTP %d transitorio para %s, reintento en %.0fs", status, url, backoff)
                    self._sleep(backoff)
                    continue
                raise FetchError(url, f"HTTP {status} (retries exhausted)", status=status, attempts=total)

            return FetchResult(
                status=status,
                body=decode_body(resp),
                content_type=resp.headers.get("content-type", ""),
                url=resp.url or url,
            )

        raise FetchError(url, "retries exhausted", attempts=total)

    def fetch_norma(self, portal_id: int) -> FetchResult:
        return self.fetch(build_norma_url(portal_id), accept=NORMA_ACCEPT)
