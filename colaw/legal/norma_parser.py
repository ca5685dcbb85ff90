# colaw/legal/norma_parser.py
"""
Parser de paginas norma.php del Gestor Normativo.

Funciones:
  - extract_title: titulo de la norma (h2.titulo-norma > og:title > placeholder)
  - extract_description: og:description
  - has_content_container: True si la pagina trae div.descripcion-contenido
  - parse_norma_html: pagina completa -> ParsedAct

Nunca levanta excepcion por HTML malformado: sin estructura reconocible
el resultado queda con menos (o cero) articulos.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Union

from bs4.element import Tag

from colaw.legal.date_extractor import extract_issued_date
from colaw.legal.definition_extractor import extract_definitions
from colaw.legal.fetcher import build_norma_url
from colaw.legal.html_extractor import CONTENT_CLASS, extract_paragraphs, find_class_block
from colaw.legal.models import ParsedAct, TargetLaw
from colaw.legal.segmenter import segment_provisions
from colaw.legal.text_extractor import _normalize_text, as_soup

logger = logging.getLogger(__name__)

UNTITLED = "Norma sin título"

RE_SITE_SUFFIX = re.compile(r"\s*-\s*Gestor Normativo\s*$", re.IGNORECASE)


def extract_title(html: Union[str, Tag]) -> str:
    soup = as_soup(html)

    heading = soup.find("h2", class_="titulo-norma")
    if heading:
        strong = heading.find("strong")
        if strong:
            title = _normalize_text(strong.get_text(" "))
            if title:
                return title

    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        title = _normalize_text(RE_SITE_SUFFIX.sub("", og_title["content"]))
        if title:
            return title

    return UNTITLED


def extract_description(html: Union[str, Tag]) -> Optional[str]:
    meta = as_soup(html).find("meta", attrs={"property": "og:description"})
    if not meta or not meta.get("content"):
        return None
    # bs4 ya decodifico las entidades del atributo
    return _normalize_text(meta["content"]) or None


def has_content_container(html: Union[str, Tag]) -> bool:
    return find_class_block(html, CONTENT_CLASS) is not None


def parse_norma_html(html: str, law: TargetLaw) -> ParsedAct:
    """
    Convierte el HTML de una norma en ParsedAct.

    Args:
        html: HTML crudo de norma.php
        law: entrada del catalogo correspondiente

    Returns:
        ParsedAct (0 articulos si falta div.descripcion-contenido)
    """
    soup = as_soup(html)
    title = extract_title(soup)
    description = extract_description(soup)
    issued_date = extract_issued_date(soup)

    content = find_class_block(soup, CONTENT_CLASS)
    if content is None:
        logger.info("%s: sin div.%s, registro solo con metadata", law.id, CONTENT_CLASS)

    provisions = segment_provisions(extract_paragraphs(content))
    definitions = extract_definitions(provisions)

    return ParsedAct(
        id=law.id,
        title=title,
        short_name=law.short_name,
        status=law.status,
        issued_date=issued_date,
        in_force_date=issued_date,
        url=build_norma_url(law.portal_id),
        description=description,
        provisions=provisions,
        definitions=definitions,
    )
