# colaw/legal/text_extractor.py
"""
Helpers de texto para HTML del Gestor Normativo.

  - as_soup: parsea con BeautifulSoup (html.parser) o reusa el arbol dado
  - _normalize_text: espacios, NBSP, comillas/guiones tipograficos, saltos de linea
  - html_to_text: texto plano (cada tag -> espacio) normalizado

Las referencias de entidad (&iacute;, &#237;, &#xED;) las decodifica el
parser; las que el portal usa para comillas y guiones quedan en su forma
ASCII.
"""
from __future__ import annotations

import re
from typing import Union

from bs4 import BeautifulSoup
from bs4.element import Tag

# Comillas/guiones tipograficos -> ASCII; NBSP -> espacio
_TYPOGRAPHY = str.maketrans({
    "\u00a0": " ",
    "\u2014": "-",
    "\u2013": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
})


def as_soup(html: Union[str, Tag, None]) -> Tag:
    if isinstance(html, Tag):
        return html
    return BeautifulSoup(html or "", "html.parser")


def _normalize_text(text: str) -> str:
    if not text:
        return ""
    text = text.translate(_TYPOGRAPHY)
    text = text.replace("\r", "")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def html_to_text(html: Union[str, Tag, None]) -> str:
    return _normalize_text(as_soup(html).get_text(" "))
