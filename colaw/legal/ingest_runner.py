# colaw/legal/ingest_runner.py
"""
Runner de ingestion del Gestor Normativo.

Puede ser llamado de:
  - scripts/ingest_normas.py (CLI)
  - tests (cliente HTTP inyectado)

Flujo por norma:
  1. Reusa snapshot HTML local (--skip-fetch) o descarga norma.php?i=N
  2. Guarda snapshot en data/source/{id}.html
  3. parse_norma_html -> ParsedAct
  4. Guarda seed JSON en data/seed/{file_name}

Normas fallidas se reintentan en rondas (max 3). Modo estricto: pagina sin
div.descripcion-contenido o con 0 articulos cuenta como fallo reintentable.

Funciones publicas:
  - ingest_law(): procesa una norma
  - run_ingestion_with_retries(): rondas sobre el catalogo
  - summarize() / generate_summary_text() / generate_report_json()
  - run(): corrida completa, retorna exit code
"""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from colaw.config import settings
from colaw.legal.catalog import CatalogError, build_law_list
from colaw.legal.fetcher import GestorNormativoClient
from colaw.legal.html_extractor import CONTENT_CLASS
from colaw.legal.models import IngestResult, ParsedAct, TargetLaw
from colaw.legal.norma_parser import has_content_container, parse_norma_html

logger = logging.getLogger(__name__)

MAX_FAILURES_SHOWN = 30
# Rondas grandes: log cada N normas (mas todas las fallidas)
LOG_EVERY = 25
LOG_ALL_UP_TO = 40


@dataclass
class IngestOptions:
    """Flags de una corrida."""
    limit: Optional[int] = None
    start: int = 0
    skip_fetch: bool = False
    full_laws: bool = False
    append: bool = False
    strict: bool = settings.STRICT_DEFAULT
    max_rounds: int = settings.MAX_ROUNDS
    index_pages: int = 1
    source_dir: Path = settings.SOURCE_DIR
    seed_dir: Path = settings.SEED_DIR
    report_path: Optional[Path] = None


# ── Disco ────────────────────────────────────────────────────────────────────

def ensure_dirs(options: IngestOptions) -> None:
    Path(options.source_dir).mkdir(parents=True, exist_ok=True)
    Path(options.seed_dir).mkdir(parents=True, exist_ok=True)


def clear_seed_directory(seed_dir: Path) -> int:
    """Borra los seeds JSON de una corrida anterior. Retorna cuantos borro."""
    removed = 0
    for path in Path(seed_dir).glob("*.json"):
        path.unlink()
        removed += 1
    if removed:
        logger.info("Seeds anteriores borrados: %d", removed)
    return removed


def source_path(law: TargetLaw, source_dir: Path) -> Path:
    return Path(source_dir) / f"{law.id}.html"


def read_source_if_exists(path: Path) -> Optional[str]:
    path = Path(path)
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def save_parsed_seed(parsed: ParsedAct, file_name: str, seed_dir: Path) -> str:
    full_path = Path(seed_dir) / file_name
    with open(full_path, "w", encoding="utf-8") as f:
        json.dump(parsed.to_dict(), f, indent=2, ensure_ascii=False)
    return str(full_path)


# ── Ingestion ────────────────────────────────────────────────────────────────

def _strict_rejection(html: str, parsed: ParsedAct) -> Optional[str]:
    if not has_content_container(html):
        return f"contenedor {CONTENT_CLASS} ausente"
    if not parsed.provisions:
        return "0 artículos extraídos"
    return None


def ingest_law(
    law: TargetLaw,
    client: GestorNormativoClient,
    options: IngestOptions,
) -> IngestResult:
    """
    Procesa una norma: snapshot/descarga -> parse -> seed.

    Cualquier excepcion queda registrada como IngestResult fallido; nunca
    interrumpe el resto del catalogo.
    """
    snapshot = source_path(law, options.source_dir)

    try:
        html = read_source_if_exists(snapshot) if options.skip_fetch else None

        if not html:
            fetched = client.fetch_norma(law.portal_id)
            if fetched.status != 200:
                return IngestResult(law=law, status="failed", error=f"HTTP {fetched.status}")
            html = fetched.body
            snapshot.write_text(html, encoding="utf-8")

        parsed = parse_norma_html(html, law)

        if options.strict:
            reason = _strict_rejection(html, parsed)
            if reason:
                # La proxima ronda vuelve a descargar en vez de reusar el snapshot
                snapshot.unlink(missing_ok=True)
                return IngestResult(law=law, status="failed", error=reason)

        seed_file = save_parsed_seed(parsed, law.file_name, options.seed_dir)
        return IngestResult(
            law=law,
            status="ok",
            seed_file=seed_file,
            provisions=len(parsed.provisions),
            definitions=len(parsed.definitions),
        )

    except Exception as e:
        logger.warning("Error al procesar %s (i=%d): %s", law.id, law.portal_id, e)
        return IngestResult(law=law, status="failed", error=str(e) or type(e).__name__)


def run_ingestion_with_retries(
    laws: List[TargetLaw],
    client: GestorNormativoClient,
    options: IngestOptions,
) -> List[IngestResult]:
    """
    Procesa el catalogo en rondas; cada ronda solo reintenta las fallidas.

    Returns:
        un IngestResult por norma (el del ultimo intento), en orden del catalogo
    """
    all_results: Dict[str, IngestResult] = {}
    attempts: Dict[str, int] = {}
    pending = list(laws)
    max_rounds = max(1, options.max_rounds)

    for round_no in range(1, max_rounds + 1):
        if not pending:
            break

        logger.info("Ronda %d/%d - pendientes: %d", round_no, max_rounds, len(pending))
        failed: List[TargetLaw] = []

        for i, law in enumerate(pending):
            result = ingest_law(law, client, options)
            attempts[law.id] = attempts.get(law.id, 0) + 1
            result.attempts = attempts[law.id]
            all_results[law.id] = result
            if not result.ok:
                failed.append(law)

            if len(pending) <= LOG_ALL_UP_TO or i % LOG_EVERY == 0 or not result.ok:
                marker = "OK" if result.ok else "FAIL"
                details = f"{result.provisions} art." if result.ok else (result.error or "error")
                logger.info("[%d/%d] i=%d %s - %s", i + 1, len(pending), law.portal_id, marker, details)

        pending = failed

    return [all_results[law.id] for law in laws if law.id in all_results]


# ── Resumen ──────────────────────────────────────────────────────────────────

def summarize(results: List[IngestResult]) -> dict:
    ok = [r for r in results if r.ok]
    failed = [r for r in results if not r.ok]
    return {
        "processed": len(results),
        "ok": len(ok),
        "failed": len(failed),
        "provisions": sum(r.provisions for r in ok),
        "definitions": sum(r.definitions for r in ok),
        "failures": [
            {
                "id": r.law.id,
                "portal_id": r.law.portal_id,
                "short_name": r.law.short_name,
                "error": r.error,
                "attempts": r.attempts,
            }
            for r in failed[:MAX_FAILURES_SHOWN]
        ],
    }


def generate_summary_text(results: List[IngestResult]) -> str:
    """Resumen legible para consola."""
    s = summarize(results)
    lines = [
        "Resumen de ingestión",
        "--------------------",
        f"Normas procesadas: {s['processed']}",
        f"Normas OK: {s['ok']}",
        f"Normas fallidas: {s['failed']}",
        f"Provisiones extraídas: {s['provisions']}",
        f"Definiciones extraídas: {s['definitions']}",
    ]

    if s["failed"]:
        lines.append("")
        lines.append(f"Fallidas (máx {MAX_FAILURES_SHOWN}):")
        for f in s["failures"]:
            lines.append(f"- i={f['portal_id']} {f['short_name']}: {f['error'] or 'error'}")
        if s["failed"] > MAX_FAILURES_SHOWN:
            lines.append(f"... {s['failed'] - MAX_FAILURES_SHOWN} fallidas adicionales")

    return "\n".join(lines) + "\n"


def generate_header_text(options: IngestOptions, mode: str, laws: List[TargetLaw],
                         source_count: Optional[int] = None) -> str:
    lines = [
        "Colombian Law - Ingestión real",
        "==============================",
        f"Portal: {settings.PORTAL_BASE_URL}",
        "Método: HTML scrape (norma.php)",
        f"Modo: {'full laws (tipdoc=18)' if mode == 'full_laws' else 'curated'}",
    ]
    if source_count is not None:
        lines.append(f"Leyes reportadas por portal: {source_count}")
    lines.append(f"Objetivo: {len(laws)} normas")
    if options.start > 0:
        lines.append(f"--start {options.start}")
    if options.limit:
        lines.append(f"--limit {options.limit}")
    for flag, enabled in (
        ("--skip-fetch", options.skip_fetch),
        ("--full-laws", options.full_laws),
        ("--append", options.append),
        ("--strict", options.strict),
    ):
        if enabled:
            lines.append(flag)
    if settings.insecure_tls_enabled():
        lines.append("ALLOW_INSECURE_TLS=1 (solo para entorno local)")
    return "\n".join(lines) + "\n"


def generate_report_json(
    results: List[IngestResult],
    options: IngestOptions,
    mode: str,
    timestamp: str,
) -> dict:
    """JSON agregado de la corrida (resumen + detalle por norma)."""
    return {
        "timestamp": timestamp,
        "mode": mode,
        "options": {
            "limit": options.limit,
            "start": options.start,
            "skip_fetch": options.skip_fetch,
            "full_laws": options.full_laws,
            "append": options.append,
            "strict": options.strict,
            "max_rounds": options.max_rounds,
        },
        "summary": summarize(results),
        "results": [
            {
                "id": r.law.id,
                "portal_id": r.law.portal_id,
                "status": r.status,
                "seed_file": r.seed_file,
                "provisions": r.provisions,
                "definitions": r.definitions,
                "error": r.error,
                "attempts": r.attempts,
            }
            for r in results
        ],
    }


# ── Orchestrator ─────────────────────────────────────────────────────────────

def run(options: IngestOptions, client: Optional[GestorNormativoClient] = None) -> int:
    """
    Corrida completa.

    Returns:
        0 si todas las normas terminaron OK, 1 si alguna fallo (o el
        catalogo dinamico no se pudo construir)
    """
    client = client or GestorNormativoClient()
    ensure_dirs(options)
    if not options.append:
        clear_seed_directory(options.seed_dir)

    try:
        build = build_law_list(
            full_laws=options.full_laws,
            start=options.start,
            limit=options.limit,
            client=client,
            source_dir=options.source_dir,
            index_pages=options.index_pages,
        )
    except CatalogError as e:
        logger.error("No se pudo construir el catalogo: %s", e)
        return 1

    print(generate_header_text(options, build.mode, build.laws, build.source_count))

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    results = run_ingestion_with_retries(build.laws, client, options)
    print(generate_summary_text(results))

    if options.report_path:
        report = generate_report_json(results, options, build.mode, timestamp)
        with open(options.report_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        print(f"Reporte guardado en: {options.report_path}")

    return 1 if any(not r.ok for r in results) else 0


# ── CLI ──────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingestion de normas del Gestor Normativo")
    parser.add_argument("--limit", type=int, default=None, help="Max normas a procesar")
    parser.add_argument("--start", type=int, default=0, help="Offset en el catalogo")
    parser.add_argument("--skip-fetch", action="store_true",
                        help="Reusa snapshots HTML locales en vez de descargar")
    parser.add_argument("--full-laws", action="store_true",
                        help="Catalogo dinamico: todas las leyes del buscador (tipdoc=18)")
    parser.add_argument("--append", action="store_true",
                        help="No borra los seeds existentes antes de la corrida")
    parser.add_argument("--strict", action="store_true", default=settings.STRICT_DEFAULT,
                        help="Pagina sin contenido o con 0 articulos cuenta como fallo")
    parser.add_argument("--max-rounds", type=int, default=settings.MAX_ROUNDS,
                        help="Rondas de reintento de normas fallidas")
    parser.add_argument("--index-pages", type=int, default=1,
                        help="Paginas del buscador a recorrer en --full-laws")
    parser.add_argument("--data-dir", type=str, default=None,
                        help="Directorio base (source/ y seed/)")
    parser.add_argument("--report", type=str, default=None, help="Path para guardar reporte JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log DEBUG")
    args = parser.parse_args(argv)
    args.start = max(0, args.start)
    return args


def options_from_args(args: argparse.Namespace) -> IngestOptions:
    source_dir, seed_dir = settings.data_dirs(args.data_dir)
    return IngestOptions(
        limit=args.limit,
        start=args.start,
        skip_fetch=args.skip_fetch,
        full_laws=args.full_laws,
        append=args.append,
        strict=args.strict,
        max_rounds=args.max_rounds,
        index_pages=args.index_pages,
        source_dir=source_dir,
        seed_dir=seed_dir,
        report_path=Path(args.report) if args.report else None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return run(options_from_args(args))
    except KeyboardInterrupt:
        logger.warning("Interrumpido; snapshots y seeds ya escritos quedan en disco")
        return 130
    except Exception:
        logger.exception("Error fatal durante la ingestion")
        return 1
