# colaw/legal/segmenter.py
"""
Segmentacion estructural de parrafos normalizados en articulos.

Granularidad: 1 provision = 1 articulo (con todos sus parrafos).
Detecta: ARTICULO / Artículo N (N = 1, 5A, 2.2.1.1, 10-1, con ° / º y punto),
         CAPITULO, TITULO, SECCION (encabezados <= 140 chars).

Maquina de estados de una pasada:
  idle             -> sin articulo activo, parrafos sueltos se ignoran
  inside_heading   -> ultimo parrafo fue encabezado (actualiza capitulo)
  inside_provision -> acumulando parrafos del articulo activo

provision_ref: 'art1', 'art5a', 'art2-2-1-1'
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from colaw.legal.models import MIN_PROVISION_CHARS, ParsedProvision
from colaw.legal.text_extractor import _normalize_text

logger = logging.getLogger(__name__)

MAX_HEADING_CHARS = 140

# ── Regex patterns ───────────────────────────────────────────────────────────

# ARTÍCULO 1°. / Artículo 5A / ARTICULO 2.2.1.1. / Artículo 10-1º
RE_ARTICULO = re.compile(
    r"^(?:ART[IÍ]CULO|Art[ií]culo)\s+"
    r"([0-9]+(?:\.[0-9]+)*(?:-[0-9]+)?[A-Za-z]?)"
    r"(?:\s*[°º])?(?:\.)?"
)

# CAPÍTULO I, TÍTULO II, SECCIÓN 3
RE_ENCABEZADO = re.compile(
    r"^(?:CAP[IÍ]TULO|T[IÍ]TULO|SECCI[ÓO]N)\s+[A-Z0-9IVXLCM.-]+",
    re.IGNORECASE,
)


class ParagraphKind(enum.Enum):
    HEADING = "heading"
    ARTICLE_START = "article_start"
    CONTINUATION = "continuation"


class _State(enum.Enum):
    IDLE = "idle"
    INSIDE_HEADING = "inside_heading"
    INSIDE_PROVISION = "inside_provision"


def classify_paragraph(text: str) -> ParagraphKind:
    """Clasificacion pura de un parrafo ya normalizado."""
    if RE_ENCABEZADO.match(text) and len(text) <= MAX_HEADING_CHARS:
        return ParagraphKind.HEADING
    if RE_ARTICULO.match(text):
        return ParagraphKind.ARTICLE_START
    return ParagraphKind.CONTINUATION


def normalize_section(raw: str) -> str:
    """'1°.' -> '1', '5 A' -> '5A'."""
    section = re.sub(r"[°º]", "", raw)
    section = re.sub(r"\s+", "", section)
    return re.sub(r"\.$", "", section)


def to_provision_ref(section: str) -> str:
    return "art" + re.sub(r"[^0-9a-z]+", "-", section.lower())


@dataclass
class _ActiveArticle:
    section: str
    chapter: Optional[str]
    blocks: List[str] = field(default_factory=list)


def _flush(active: Optional[_ActiveArticle], out: List[ParsedProvision]) -> None:
    if active is None:
        return
    content = _normalize_text("\n\n".join(active.blocks))
    if len(content) < MIN_PROVISION_CHARS:
        logger.debug("articulo %s descartado (%d chars)", active.section, len(content))
        return
    out.append(ParsedProvision(
        provision_ref=to_provision_ref(active.section),
        chapter=active.chapter,
        section=active.section,
        title=f"Artículo {active.section}",
        content=content,
    ))


def segment_provisions(paragraphs: Iterable[str]) -> List[ParsedProvision]:
    """
    Recorre los parrafos una vez y arma los articulos.

    Returns:
        lista de ParsedProvision en orden de aparicion, ya deduplicada por seccion
    """
    provisions: List[ParsedProvision] = []
    state = _State.IDLE
    current_chapter: Optional[str] = None
    active: Optional[_ActiveArticle] = None

    for paragraph in paragraphs:
        kind = classify_paragraph(paragraph)

        if kind is ParagraphKind.HEADING:
            current_chapter = paragraph
            state = _State.INSIDE_HEADING
            continue

        if kind is ParagraphKind.ARTICLE_START:
            _flush(active, provisions)
            section = normalize_section(RE_ARTICULO.match(paragraph).group(1))
            active = _ActiveArticle(section=section, chapter=current_chapter, blocks=[paragraph])
            state = _State.INSIDE_PROVISION
            continue

        # Continuacion: un encabezado no cierra el articulo activo
        if active is not None:
            active.blocks.append(paragraph)
            state = _State.INSIDE_PROVISION
        else:
            state = _State.IDLE

    logger.debug("segment_provisions: estado final %s", state.value)

    _flush(active, provisions)
    return dedupe_provisions(provisions)


def dedupe_provisions(provisions: Iterable[ParsedProvision]) -> List[ParsedProvision]:
    """Una provision por seccion; en colision gana el contenido mas largo."""
    by_section: Dict[str, ParsedProvision] = {}
    for provision in provisions:
        existing = by_section.get(provision.section)
        if existing is None or len(provision.content) > len(existing.content):
            by_section[provision.section] = provision
    return list(by_section.values())
