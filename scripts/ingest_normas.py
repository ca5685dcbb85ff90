#!/usr/bin/env python3
# scripts/ingest_normas.py
"""
Ingestion de legislacion colombiana: norma.php -> parse -> seed JSON.

Uso:
  python scripts/ingest_normas.py                          # catalogo curado
  python scripts/ingest_normas.py --limit 3                # primeras 3
  python scripts/ingest_normas.py --skip-fetch             # reusa data/source/*.html
  python scripts/ingest_normas.py --full-laws --start 100 --limit 50 --append
  python scripts/ingest_normas.py --strict --report out/ingest.json

Env:
  ALLOW_INSECURE_TLS=1   desactiva verificacion TLS (solo entorno local)
  COLAW_DATA_DIR         directorio base (default: data)

Exit code 1 si alguna norma fallo despues de todas las rondas.
"""
from __future__ import annotations

import os
import sys

# Garantizar que la raiz del proyecto esta en el path
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from colaw.legal.ingest_runner import main

if __name__ == "__main__":
    sys.exit(main())
