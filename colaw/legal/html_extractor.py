# colaw/legal/html_extractor.py
"""
Aislamiento del bloque de contenido normativo de una pagina norma.php.

El texto de los articulos vive en <div class="descripcion-contenido">.
Algunas paginas no lo traen: en ese caso no se adivina el contenido
(el registro queda solo con metadata y 0 articulos).

Usa BeautifulSoup: divs anidados, comentarios, scripts y <p> sin cierre
los resuelve el parser.
"""
from __future__ import annotations

import copy
import logging
from typing import List, Optional, Union

from bs4.element import Tag

from colaw.legal.text_extractor import as_soup, html_to_text

logger = logging.getLogger(__name__)

CONTENT_CLASS = "descripcion-contenido"


def find_class_block(html: Union[str, Tag, None], class_name: str = CONTENT_CLASS) -> Optional[Tag]:
    """
    Primer <div> que tenga la clase dada (entre otras clases posibles).

    Returns:
        el Tag del div, o None si no existe
    """
    block = as_soup(html).find("div", class_=class_name)
    if block is None:
        logger.debug("find_class_block: div.%s ausente", class_name)
    return block


def _paragraph_text(p: Tag) -> str:
    # <p> sin cierre: html.parser anida los siguientes; cada uno se lee aparte
    if p.find("p") is not None:
        p = copy.copy(p)
        for inner in p.find_all("p"):
            inner.decompose()
    return html_to_text(p)


def extract_paragraphs(content: Union[str, Tag, None]) -> List[str]:
    """Texto normalizado de cada <p> del contenido, en orden; parrafos vacios se descartan."""
    if content is None:
        return []
    paragraphs = []
    for p in as_soup(content).find_all("p"):
        text = _paragraph_text(p)
        if text:
            paragraphs.append(text)
    return paragraphs
