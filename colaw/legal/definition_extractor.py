# colaw/legal/definition_extractor.py
"""
Extractor de definiciones de articulos tipo "Definiciones".

Solo se revisan articulos cuyo texto contiene "se entiende por" o
"definiciones". Dentro de ellos se buscan literales:

    a) Autorización: Consentimiento previo, expreso e informado ...;
    b) Base de Datos: Conjunto organizado de datos personales ...;

Limites: termino 2-120 chars, definicion >= 8 chars, sin duplicados
(case-insensitive) por documento, maximo 80 definiciones.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List

from colaw.legal.models import (
    MAX_TERM_CHARS,
    MIN_DEFINITION_CHARS,
    MIN_TERM_CHARS,
    ParsedDefinition,
    ParsedProvision,
)
from colaw.legal.text_extractor import _normalize_text

logger = logging.getLogger(__name__)

MAX_DEFINITIONS = 80

_MARKERS = ("se entiende por", "definiciones")

RE_LITERAL = re.compile(
    r"(?:^|\n)\s*([a-zñ])\)\s*([^:;\n]{2,120}?)\s*:\s*([^\n]+?)(?=\n\s*[a-zñ]\)\s|$)",
    re.IGNORECASE | re.MULTILINE,
)


def _is_definitional(content: str) -> bool:
    lower = content.lower()
    return any(marker in lower for marker in _MARKERS)


def extract_definitions(
    provisions: Iterable[ParsedProvision],
    max_definitions: int = MAX_DEFINITIONS,
) -> List[ParsedDefinition]:
    definitions: List[ParsedDefinition] = []
    seen = set()

    for provision in provisions:
        if not _is_definitional(provision.content):
            continue

        for m in RE_LITERAL.finditer(provision.content):
            term = re.sub(r"[. ]+$", "", _normalize_text(m.group(2)))
            definition = re.sub(r"[; ]+$", "", _normalize_text(m.group(3)))
            key = term.lower()

            if not MIN_TERM_CHARS <= len(term) <= MAX_TERM_CHARS:
                continue
            if len(definition) < MIN_DEFINITION_CHARS:
                continue
            if key in seen:
                continue
            seen.add(key)

            definitions.append(ParsedDefinition(
                term=term,
                definition=definition,
                source_provision=provision.provision_ref,
            ))

    if len(definitions) > max_definitions:
        logger.debug("extract_definitions: %d definiciones, truncando a %d", len(definitions), max_definitions)
    return definitions[:max_definitions]
