"""Catalogo curado: normas criticas a ingerir con portal_id y estado explicitos."""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from colaw.legal.models import TargetLaw

DOC_TYPE_LEY = 18
DOC_TYPE_DECRETO = 11


TARGET_LAWS: Tuple[TargetLaw, ...] = (
    TargetLaw(
        id="co-ley-1581-2012",
        file_name="01-ley-1581-2012-proteccion-datos.json",
        portal_id=49981,
        doc_type_id=DOC_TYPE_LEY,
        number="1581",
        year=2012,
        short_name="Ley 1581 de 2012",
        status="in_force",
    ),
    TargetLaw(
        id="co-ley-1266-2008",
        file_name="02-ley-1266-2008-habeas-data-financiero.json",
        portal_id=34488,
        doc_type_id=DOC_TYPE_LEY,
        number="1266",
        year=2008,
        short_name="Ley 1266 de 2008",
        status="in_force",
    ),
    TargetLaw(
        id="co-ley-1273-2009",
        file_name="03-ley-1273-2009-delitos-informaticos.json",
        portal_id=34492,
        doc_type_id=DOC_TYPE_LEY,
        number="1273",
        year=2009,
        short_name="Ley 1273 de 2009",
        status="in_force",
    ),
    TargetLaw(
        id="co-ley-1341-2009",
        file_name="04-ley-1341-2009-sector-tic.json",
        portal_id=36913,
        doc_type_id=DOC_TYPE_LEY,
        number="1341",
        year=2009,
        short_name="Ley 1341 de 2009",
        status="amended",
    ),
    TargetLaw(
        id="co-ley-527-1999",
        file_name="05-ley-527-1999-comercio-electronico.json",
        portal_id=4276,
        doc_type_id=DOC_TYPE_LEY,
        number="527",
        year=1999,
        short_name="Ley 527 de 1999",
        status="amended",
    ),
    TargetLaw(
        id="co-ley-1712-2014",
        file_name="06-ley-1712-2014-transparencia-acceso-informacion.json",
        portal_id=56882,
        doc_type_id=DOC_TYPE_LEY,
        number="1712",
        year=2014,
        short_name="Ley 1712 de 2014",
        status="in_force",
    ),
    TargetLaw(
        id="co-decreto-1078-2015",
        file_name="07-decreto-1078-2015-sector-tic.json",
        portal_id=77888,
        doc_type_id=DOC_TYPE_DECRETO,
        number="1078",
        year=2015,
        short_name="Decreto 1078 de 2015",
        status="amended",
    ),
    TargetLaw(
        id="co-decreto-1377-2013",
        file_name="08-decreto-1377-2013-reglamenta-ley-1581.json",
        portal_id=53646,
        doc_type_id=DOC_TYPE_DECRETO,
        number="1377",
        year=2013,
        short_name="Decreto 1377 de 2013",
        status="amended",
    ),
    TargetLaw(
        id="co-ley-1621-2013",
        file_name="09-ley-1621-2013-inteligencia-contrainteligencia.json",
        portal_id=52706,
        doc_type_id=DOC_TYPE_LEY,
        number="1621",
        year=2013,
        short_name="Ley 1621 de 2013",
        status="in_force",
    ),
    TargetLaw(
        id="co-ley-1978-2019",
        file_name="10-ley-1978-2019-modernizacion-sector-tic.json",
        portal_id=98210,
        doc_type_id=DOC_TYPE_LEY,
        number="1978",
        year=2019,
        short_name="Ley 1978 de 2019",
        status="in_force",
    ),
)


def check_unique(laws: Iterable[TargetLaw]) -> Dict[str, TargetLaw]:
    by_id: Dict[str, TargetLaw] = {}
    file_names = set()
    for law in laws:
        if law.id in by_id:
            raise ValueError(f"id duplicado en el catalogo: {law.id}")
        if law.file_name in file_names:
            raise ValueError(f"file_name duplicado en el catalogo: {law.file_name}")
        by_id[law.id] = law
        file_names.add(law.file_name)
    return by_id


_BY_ID: Dict[str, TargetLaw] = check_unique(TARGET_LAWS)


def get_target_law(law_id: str) -> TargetLaw:
    law = _BY_ID.get(law_id)
    if law is None:
        raise ValueError(f"Norma desconocida: {law_id}")
    return law
