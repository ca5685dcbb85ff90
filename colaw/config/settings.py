# colaw/config/settings.py
"""
Configuracion centralizada de la ingestion, leida de variables de entorno.

ALLOW_INSECURE_TLS=1: desactiva la validacion de certificados SOLO en la
sesion de descarga (entornos sin raices CA). Nunca activo por defecto.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes")

# ─── Portal ────────────────────────────────────────────────────────
PORTAL_BASE_URL = "https://www.funcionpublica.gov.co/eva/gestornormativo"
SEARCH_ENDPOINT = f"{PORTAL_BASE_URL}/gestion/funphp/funajax.php"

USER_AGENT = "colaw-ingest/1.0 (ingestion de legislacion colombiana)"
ACCEPT_LANGUAGE = "es-CO,es;q=0.9,en;q=0.8"

# ─── Rate limit y reintentos ───────────────────────────────────────
MIN_DELAY_MS = int(os.environ.get("COLAW_MIN_DELAY_MS", "1200"))
MAX_RETRIES = int(os.environ.get("COLAW_MAX_RETRIES", "3"))
HTTP_TIMEOUT_SECONDS = int(os.environ.get("COLAW_HTTP_TIMEOUT", "30"))

# ─── Orquestacion ──────────────────────────────────────────────────
MAX_ROUNDS = int(os.environ.get("COLAW_MAX_ROUNDS", "3"))
STRICT_DEFAULT = os.environ.get("COLAW_STRICT", "false").lower() in _TRUE_VALUES

# ─── Directorios de datos ──────────────────────────────────────────
DATA_DIR = Path(os.environ.get("COLAW_DATA_DIR", "data"))
SOURCE_DIR = DATA_DIR / "source"
SEED_DIR = DATA_DIR / "seed"


def insecure_tls_enabled() -> bool:
    """Lee ALLOW_INSECURE_TLS en el momento de la llamada (opt-in explicito)."""
    return os.environ.get("ALLOW_INSECURE_TLS", "").strip().lower() in _TRUE_VALUES


def data_dirs(data_dir=None) -> tuple:
    """Retorna (source_dir, seed_dir) para un directorio de datos dado."""
    if data_dir is None:
        return SOURCE_DIR, SEED_DIR
    base = Path(data_dir)
    return base / "source", base / "seed"
