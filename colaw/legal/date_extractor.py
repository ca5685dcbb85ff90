# colaw/legal/date_extractor.py
"""
Extractor de la fecha de expedicion a partir del "Medio de Publicacion".

Dos ordenes de la frase en el portal:
  "Medio de Publicación: Diario Oficial No. 48.587 de octubre 18 de 2012."
  "Medio de Publicación: Diario Oficial No. 48.587 del 18 de octubre de 2012."

Resultado en ISO (YYYY-MM-DD) o None si no hay patron, el mes no existe
o la fecha es imposible.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional, Union

from bs4.element import Tag

from colaw.legal.text_extractor import html_to_text

logger = logging.getLogger(__name__)

MESES_ES = {
    "enero": 1, "febrero": 2, "marzo": 3, "abril": 4,
    "mayo": 5, "junio": 6, "julio": 7, "agosto": 8,
    "septiembre": 9, "setiembre": 9, "octubre": 10,
    "noviembre": 11, "diciembre": 12,
}

# "... de octubre 18 de 2012"
RE_MES_DIA_ANO = re.compile(
    r"Medio de Publicaci[óo]n:\s*Diario Oficial(?:[^.]|\.(?=\s*\d))*?\bde\s+([a-záéíóú]+)\s+(\d{1,2})\s+de\s+(\d{4})",
    re.IGNORECASE,
)

# "... del 18 de enero de 2012"
RE_DIA_MES_ANO = re.compile(
    r"Medio de Publicaci[óo]n:\s*Diario Oficial(?:[^.]|\.(?=\s*\d))*?\bdel?\s+(\d{1,2})\s+de\s+([a-záéíóú]+)\s+de\s+(\d{4})",
    re.IGNORECASE,
)


def to_iso_date(day: str, month_name: str, year: str) -> Optional[str]:
    """Convierte dia / nombre de mes en espanol / ano a ISO."""
    month = MESES_ES.get(month_name.lower())
    if not month:
        logger.debug("to_iso_date: mes desconocido '%s'", month_name)
        return None
    try:
        return date(int(year), month, int(day)).isoformat()
    except ValueError:
        logger.debug("to_iso_date: fecha invalida %s/%s/%s", day, month_name, year)
        return None


def extract_issued_date(html: Union[str, Tag]) -> Optional[str]:
    """Busca la frase del Diario Oficial en el texto plano de la pagina."""
    plain = html_to_text(html)

    m = RE_MES_DIA_ANO.search(plain)
    if m:
        return to_iso_date(m.group(2), m.group(1), m.group(3))

    m = RE_DIA_MES_ANO.search(plain)
    if m:
        return to_iso_date(m.group(1), m.group(2), m.group(3))

    return None
