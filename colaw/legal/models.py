# colaw/legal/models.py
"""
Data models para el pipeline de legislacion.
Dataclasses puras, sin dependencia de red ni de disco.

Las restricciones de cada registro se validan en la construccion
(__post_init__) y levantan ValueError.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

LAW_STATUSES = ("in_force", "amended", "repealed", "not_yet_in_force")
INGEST_STATUSES = ("ok", "failed")

MIN_PROVISION_CHARS = 20
MIN_TERM_CHARS = 2
MAX_TERM_CHARS = 120
MIN_DEFINITION_CHARS = 8

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class TargetLaw:
    """Una norma del catalogo a ingerir."""
    id: str
    file_name: str
    portal_id: int
    doc_type_id: int
    short_name: str
    status: str
    number: Optional[str] = None
    year: Optional[int] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("TargetLaw.id vacio")
        if not self.file_name:
            raise ValueError(f"TargetLaw.file_name vacio para {self.id}")
        if self.portal_id <= 0:
            raise ValueError(f"portal_id invalido para {self.id}: {self.portal_id}")
        if self.status not in LAW_STATUSES:
            raise ValueError(f"status invalido para {self.id}: {self.status!r}")


@dataclass(frozen=True)
class ParsedProvision:
    """Un articulo extraido (unidad equivalente a articulo)."""
    provision_ref: str          # 'art1', 'art5a', 'art2-2-1-1'
    section: str                # '1', '5A', '2.2.1.1'
    title: str                  # 'Artículo 1'
    content: str
    chapter: Optional[str] = None

    def __post_init__(self):
        if len(self.content) < MIN_PROVISION_CHARS:
            raise ValueError(
                f"contenido demasiado corto para {self.provision_ref} ({len(self.content)} chars)"
            )

    def to_dict(self) -> dict:
        out = {"provision_ref": self.provision_ref}
        if self.chapter is not None:
            out["chapter"] = self.chapter
        out["section"] = self.section
        out["title"] = self.title
        out["content"] = self.content
        return out


@dataclass(frozen=True)
class ParsedDefinition:
    """Par termino/definicion extraido de un articulo de definiciones."""
    term: str
    definition: str
    source_provision: Optional[str] = None

    def __post_init__(self):
        if not MIN_TERM_CHARS <= len(self.term) <= MAX_TERM_CHARS:
            raise ValueError(f"termino fuera de rango: {self.term!r}")
        if len(self.definition) < MIN_DEFINITION_CHARS:
            raise ValueError(f"definicion demasiado corta para {self.term!r}")

    def to_dict(self) -> dict:
        out = {"term": self.term, "definition": self.definition}
        if self.source_provision is not None:
            out["source_provision"] = self.source_provision
        return out


@dataclass(frozen=True)
class ParsedAct:
    """Registro final de una norma, serializado como seed JSON."""
    id: str
    title: str
    short_name: str
    status: str
    url: str
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    description: Optional[str] = None
    title_en: Optional[str] = None
    provisions: Tuple[ParsedProvision, ...] = ()
    definitions: Tuple[ParsedDefinition, ...] = ()
    type: str = "statute"

    def __post_init__(self):
        if self.status not in LAW_STATUSES:
            raise ValueError(f"status invalido para {self.id}: {self.status!r}")
        for name in ("issued_date", "in_force_date"):
            value = getattr(self, name)
            if value is not None and not _ISO_DATE.match(value):
                raise ValueError(f"{name} no es ISO YYYY-MM-DD: {value!r}")
        # listas -> tuplas (registro inmutable)
        object.__setattr__(self, "provisions", tuple(self.provisions))
        object.__setattr__(self, "definitions", tuple(self.definitions))

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
        }
        if self.title_en is not None:
            out["title_en"] = self.title_en
        out["short_name"] = self.short_name
        out["status"] = self.status
        if self.issued_date is not None:
            out["issued_date"] = self.issued_date
        if self.in_force_date is not None:
            out["in_force_date"] = self.in_force_date
        out["url"] = self.url
        if self.description is not None:
            out["description"] = self.description
        out["provisions"] = [p.to_dict() for p in self.provisions]
        out["definitions"] = [d.to_dict() for d in self.definitions]
        return out


@dataclass
class IngestResult:
    """Resultado de una entrada del catalogo en una corrida."""
    law: TargetLaw
    status: str                     # 'ok' | 'failed'
    seed_file: Optional[str] = None
    provisions: int = 0
    definitions: int = 0
    error: Optional[str] = None
    attempts: int = 1

    def __post_init__(self):
        if self.status not in INGEST_STATUSES:
            raise ValueError(f"status de ingestion invalido: {self.status!r}")
        if self.status == "ok" and not self.seed_file:
            raise ValueError(f"resultado ok sin seed_file para {self.law.id}")
        if self.status == "failed" and not self.error:
            raise ValueError(f"resultado failed sin error para {self.law.id}")

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass(frozen=True)
class SearchLawEntry:
    """Una fila del indice de busqueda del portal."""
    portal_id: int
    title: str


@dataclass
class LawListBuild:
    """Catalogo resuelto para una corrida."""
    laws: List[TargetLaw] = field(default_factory=list)
    mode: str = "curated"           # 'curated' | 'full_laws'
    source_count: Optional[int] = None
