# colaw/legal/catalog.py
"""
Catalogo de normas a ingerir.

Modos:
  - curated: lista fija TARGET_LAWS (colaw.config.target_laws)
  - full_laws: todas las "Ley ..." del buscador avanzado del portal (tipdoc=18)

Funciones:
  - parse_search_count: "Número de documentos encontrados: N"
  - extract_law_index_from_search_html: anchors norma.php?i=N con <h5> titulo
  - build_dynamic_law_id / build_dynamic_target_laws: id estable co-ley-{num}-{ano}
  - fetch_full_law_index: descarga el indice y guarda snapshots html/json
  - build_law_list: resuelve el catalogo de la corrida (start/limit)
"""
from __future__ import annotations

import json
import logging
import re
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup

from colaw.config import settings
from colaw.config.target_laws import DOC_TYPE_LEY, TARGET_LAWS, check_unique
from colaw.legal.fetcher import FetchError, GestorNormativoClient, build_search_url
from colaw.legal.models import LawListBuild, SearchLawEntry, TargetLaw

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Falla al construir el catalogo dinamico (aborta solo el modo full_laws)."""


RE_SEARCH_COUNT = re.compile(r"Número de documentos encontrados:\s*([0-9.]+)", re.IGNORECASE)
RE_NORMA_HREF = re.compile(r"^norma\.php\?i=(\d+)$")
# "Ley 1581 de 2012", "Ley 1955 de 2019 (Plan Nacional ...)"
RE_LEY_TITULO = re.compile(r"Ley\s+([0-9A-Za-z.-]+)\s+de\s+(\d{4})", re.IGNORECASE)

SLUG_MAX_CHARS = 80


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return text[:SLUG_MAX_CHARS]


def parse_search_count(html: str) -> Optional[int]:
    m = RE_SEARCH_COUNT.search(html or "")
    if not m:
        return None
    return int(m.group(1).replace(".", ""))


def extract_law_index_from_search_html(html: str, keyword: str = "Ley") -> List[SearchLawEntry]:
    """
    Extrae (portal_id, titulo) de la pagina de resultados del buscador.

    Cada resultado es <a href="norma.php?i=N"> con un <h5> dentro. Solo se
    quedan los titulos que empiezan con la palabra clave; dedup por portal_id.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    entries: List[SearchLawEntry] = []
    seen: Set[int] = set()
    keyword_re = re.compile(rf"^{re.escape(keyword)}\s+", re.IGNORECASE)

    for a in soup.find_all("a", href=RE_NORMA_HREF):
        h5 = a.find("h5")
        if not h5:
            continue

        portal_id = int(RE_NORMA_HREF.match(a["href"]).group(1))
        if portal_id in seen:
            continue
        seen.add(portal_id)

        title = re.sub(r"\s+", " ", h5.get_text()).strip()
        if not keyword_re.match(title):
            continue

        entries.append(SearchLawEntry(portal_id=portal_id, title=title))

    return entries


def _parse_ley_title(title: str) -> Optional[Tuple[str, int]]:
    m = RE_LEY_TITULO.search(title)
    if not m:
        logger.debug("_parse_ley_title: no casa el patron para '%s'", title[:80])
        return None
    return m.group(1), int(m.group(2))


def build_dynamic_law_id(entry: SearchLawEntry, used_ids: Set[str]) -> str:
    """co-ley-{numero}-{ano}; sin patron -> co-ley-i{portal_id}; colision -> sufijo -i{portal_id}."""
    parsed = _parse_ley_title(entry.title)
    if parsed:
        number, year = parsed
        base = f"co-ley-{slugify(number)}-{year}"
    else:
        base = f"co-ley-i{entry.portal_id}"

    if base not in used_ids:
        used_ids.add(base)
        return base

    with_portal = f"{base}-i{entry.portal_id}"
    used_ids.add(with_portal)
    return with_portal


def build_dynamic_target_laws(
    entries: List[SearchLawEntry],
    doc_type_id: int = DOC_TYPE_LEY,
) -> List[TargetLaw]:
    laws: List[TargetLaw] = []
    used_ids: Set[str] = set()

    for idx, entry in enumerate(entries, 1):
        law_id = build_dynamic_law_id(entry, used_ids)
        safe_title = slugify(entry.title) or f"ley-i{entry.portal_id}"
        parsed = _parse_ley_title(entry.title)
        laws.append(TargetLaw(
            id=law_id,
            file_name=f"{idx:04d}-{safe_title}.json",
            portal_id=entry.portal_id,
            doc_type_id=doc_type_id,
            number=parsed[0] if parsed else None,
            year=parsed[1] if parsed else None,
            short_name=entry.title,
            status="in_force",
        ))

    check_unique(laws)
    return laws


def _fetch_index_page(client: GestorNormativoClient, doc_type_id: int, page: int) -> str:
    url = build_search_url(doc_type_id, page)
    try:
        fetched = client.fetch(url, accept="text/html, */*")
    except FetchError as e:
        raise CatalogError(f"No se pudo obtener índice completo de leyes: {e}") from e
    if fetched.status != 200:
        raise CatalogError(f"No se pudo obtener índice completo de leyes (HTTP {fetched.status})")
    return fetched.body


def fetch_full_law_index(
    client: GestorNormativoClient,
    source_dir: Path,
    doc_type_id: int = DOC_TYPE_LEY,
    max_pages: int = 1,
) -> Tuple[List[SearchLawEntry], Optional[int]]:
    """
    Descarga el indice de busqueda y guarda snapshots en source_dir.

    Pagina 1 trae el conteo del portal; se siguen pidiendo paginas (hasta
    max_pages) mientras falten documentos y la pagina aporte entradas nuevas.

    Returns:
        (entries, source_count)

    Raises:
        CatalogError si la descarga falla, falta el conteo del portal
        o no se extrajo ninguna norma
    """
    source_dir = Path(source_dir)
    source_dir.mkdir(parents=True, exist_ok=True)
    stem = f"law-index-tipdoc{doc_type_id}"

    entries: List[SearchLawEntry] = []
    seen: Set[int] = set()
    source_count: Optional[int] = None

    for page in range(1, max(1, max_pages) + 1):
        body = _fetch_index_page(client, doc_type_id, page)
        suffix = "" if page == 1 else f"-p{page}"
        (source_dir / f"{stem}{suffix}.html").write_text(body, encoding="utf-8")

        if page == 1:
            source_count = parse_search_count(body)

        new_entries = [e for e in extract_law_index_from_search_html(body) if e.portal_id not in seen]
        logger.info("  Pagina %d: %d leyes nuevas", page, len(new_entries))
        for entry in new_entries:
            seen.add(entry.portal_id)
            entries.append(entry)

        if not new_entries or source_count is None or len(entries) >= source_count:
            break

    snapshot = {
        "fetched_at": datetime.now(timezone.utc).isoformat(),
        "source_count": source_count,
        "extracted_count": len(entries),
        "entries": [{"portal_id": e.portal_id, "title": e.title} for e in entries],
    }
    with open(source_dir / f"{stem}.json", "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2, ensure_ascii=False)

    if source_count is None:
        raise CatalogError(f"Índice sin conteo de documentos (tipdoc={doc_type_id})")
    if not entries:
        raise CatalogError(f"Índice de leyes sin entradas (tipdoc={doc_type_id})")

    logger.info("Indice tipdoc=%d: %d leyes extraidas (portal reporta %d)",
                doc_type_id, len(entries), source_count)
    return entries, source_count


def slice_laws(laws: List[TargetLaw], start: int = 0, limit: Optional[int] = None) -> List[TargetLaw]:
    sliced = list(laws)[max(0, start):]
    return sliced[:limit] if limit else sliced


def build_law_list(
    full_laws: bool = False,
    start: int = 0,
    limit: Optional[int] = None,
    client: Optional[GestorNormativoClient] = None,
    source_dir: Path = settings.SOURCE_DIR,
    index_pages: int = 1,
) -> LawListBuild:
    if not full_laws:
        return LawListBuild(laws=slice_laws(TARGET_LAWS, start, limit), mode="curated")

    client = client or GestorNormativoClient()
    entries, source_count = fetch_full_law_index(client, source_dir, max_pages=index_pages)
    dynamic = build_dynamic_target_laws(entries)
    return LawListBuild(
        laws=slice_laws(dynamic, start, limit),
        mode="full_laws",
        source_count=source_count,
    )
