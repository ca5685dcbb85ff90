# tests/test_segmenter.py
"""
Tests para la segmentacion de parrafos en articulos.
Cubre clasificacion, normalizacion de seccion, flush < 20 chars, dedup.
"""
from __future__ import annotations

import pytest

from colaw.legal.models import ParsedProvision
from colaw.legal.segmenter import (
    ParagraphKind,
    classify_paragraph,
    dedupe_provisions,
    normalize_section,
    segment_provisions,
    to_provision_ref,
)


# ── classify_paragraph ───────────────────────────────────────────────────────

class TestClassifyParagraph:
    @pytest.mark.parametrize("text", [
        "CAPÍTULO I",
        "CAPITULO II Disposiciones generales",
        "TÍTULO III",
        "Título 2",
        "SECCIÓN 1",
        "Seccion IV",
    ])
    def test_headings(self, text):
        assert classify_paragraph(text) is ParagraphKind.HEADING

    def test_long_heading_is_continuation(self):
        text = "CAPÍTULO I " + "x" * 140
        assert classify_paragraph(text) is ParagraphKind.CONTINUATION

    @pytest.mark.parametrize("text", [
        "Artículo 1°. Objeto.",
        "ARTÍCULO 2o. Definiciones",
        "ARTICULO 10. Texto",
        "Articulo 5A. Texto",
        "Artículo 2.2.1.1. Texto",
        "Artículo 10-1º Texto",
        "Artículo 7",
    ])
    def test_article_starts(self, text):
        assert classify_paragraph(text) is ParagraphKind.ARTICLE_START

    @pytest.mark.parametrize("text", [
        "El presente artículo 3 se aplica",
        "Art. 5 abreviado",
        "ARTÍCULO PRIMERO. Texto",
        "Parágrafo. Texto del parágrafo",
    ])
    def test_continuations(self, text):
        assert classify_paragraph(text) is ParagraphKind.CONTINUATION


# ── normalize_section / to_provision_ref ─────────────────────────────────────

class TestSectionRef:
    @pytest.mark.parametrize("raw,section,ref", [
        ("1", "1", "art1"),
        ("1°", "1", "art1"),
        ("5A", "5A", "art5a"),
        ("2.2.1.1", "2.2.1.1", "art2-2-1-1"),
        ("10-1", "10-1", "art10-1"),
        ("12.", "12", "art12"),
    ])
    def test_normalization(self, raw, section, ref):
        assert normalize_section(raw) == section
        assert to_provision_ref(normalize_section(raw)) == ref

    def test_ref_deterministic(self):
        assert to_provision_ref("7B") == to_provision_ref("7B") == "art7b"


# ── segment_provisions ───────────────────────────────────────────────────────

class TestSegmentProvisions:
    def test_two_articles_without_chapter(self):
        provisions = segment_provisions([
            "Artículo 1°. Objeto. Texto del objeto de la ley.",
            "Artículo 2. Ámbito. Texto del ámbito de aplicación.",
        ])
        assert [p.provision_ref for p in provisions] == ["art1", "art2"]
        assert [p.section for p in provisions] == ["1", "2"]
        assert all(p.chapter is None for p in provisions)
        assert provisions[0].title == "Artículo 1"

    def test_chapter_context(self):
        provisions = segment_provisions([
            "CAPÍTULO I",
            "Artículo 3. Autorización del titular para el tratamiento.",
        ])
        assert len(provisions) == 1
        assert provisions[0].chapter == "CAPÍTULO I"

    def test_chapter_changes_between_articles(self):
        provisions = segment_provisions([
            "TÍTULO I",
            "Artículo 1. Primer artículo con texto suficiente.",
            "TÍTULO II",
            "Artículo 2. Segundo artículo con texto suficiente.",
        ])
        assert [p.chapter for p in provisions] == ["TÍTULO I", "TÍTULO II"]

    def test_continuation_paragraphs_joined(self):
        provisions = segment_provisions([
            "Artículo 4. Principios.",
            "a) Principio de legalidad;",
            "b) Principio de finalidad.",
        ])
        assert provisions[0].content == (
            "Artículo 4. Principios.\n\na) Principio de legalidad;\n\nb) Principio de finalidad."
        )

    def test_heading_does_not_close_article(self):
        provisions = segment_provisions([
            "Artículo 4. Principios rectores de la ley.",
            "CAPÍTULO II",
            "Parágrafo. Texto que sigue al encabezado.",
        ])
        assert len(provisions) == 1
        assert "Parágrafo" in provisions[0].content
        assert provisions[0].chapter is None

    def test_preamble_ignored(self):
        provisions = segment_provisions([
            "EL CONGRESO DE COLOMBIA",
            "DECRETA:",
            "Artículo 1. Objeto de la ley en cuestión.",
        ])
        assert len(provisions) == 1
        assert "DECRETA" not in provisions[0].content

    def test_short_article_discarded(self):
        provisions = segment_provisions([
            "ARTÍCULO 4o.",
            "Artículo 5. Texto con longitud suficiente.",
            "Artículo 6.",
        ])
        assert [p.section for p in provisions] == ["5"]
        assert all(len(p.content) >= 20 for p in provisions)

    def test_empty_input(self):
        assert segment_provisions([]) == []

    def test_duplicates_longest_wins(self):
        provisions = segment_provisions([
            "Artículo 1. Versión corta del texto.",
            "Artículo 2. Otro artículo cualquiera aquí.",
            "Artículo 1°. Versión larga del texto del artículo.",
            "Con un párrafo adicional.",
        ])
        assert [p.section for p in provisions] == ["1", "2"]
        assert "Versión larga" in provisions[0].content
        sections = [p.section for p in provisions]
        assert len(sections) == len(set(sections))


class TestDedupeProvisions:
    def _p(self, section, content):
        return ParsedProvision(
            provision_ref=to_provision_ref(section),
            section=section,
            title=f"Artículo {section}",
            content=content,
        )

    def test_first_kept_on_tie(self):
        a = self._p("1", "a" * 30)
        b = self._p("1", "b" * 30)
        assert dedupe_provisions([a, b]) == [a]

    def test_longer_replaces_keeping_position(self):
        a = self._p("1", "a" * 25)
        b = self._p("2", "b" * 25)
        c = self._p("1", "c" * 40)
        assert dedupe_provisions([a, b, c]) == [c, b]
