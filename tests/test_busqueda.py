"""Tests for busqueda: FieldIndex, MatchClassifier and SuggestionEngine."""
from __future__ import annotations

import pytest

from busqueda import (
    CAMPOS_BASE,
    CAMPOS_UNIFICADOS,
    FieldIndex,
    FieldType,
    MatchClassifier,
    Suggestion,
    SuggestionEngine,
)
from conftest import hacer_registro

# ── FieldType ────────────────────────────────────────────────────────


class TestFieldType:
    def test_parse_valid(self) -> None:
        assert FieldType.parse('area') is FieldType.AREA
        assert FieldType.parse(FieldType.ID) is FieldType.ID

    def test_parse_unknown_returns_none(self) -> None:
        assert FieldType.parse('color') is None
        assert FieldType.parse(None) is None

    def test_base_fields_exclude_origen(self) -> None:
        assert FieldType.ORIGEN not in CAMPOS_BASE
        assert FieldType.ORIGEN in CAMPOS_UNIFICADOS
        assert list(CAMPOS_UNIFICADOS)[:len(CAMPOS_BASE)] == list(CAMPOS_BASE)


# ── FieldIndex ───────────────────────────────────────────────────────


class TestFieldIndex:
    def test_skips_empty_values(self, registros) -> None:
        indice = FieldIndex(registros)
        assert indice.valores(FieldType.RESGUARDANTE) == ['Carlos Ruiz', 'Carlos Ruiz']
        assert len(indice.valores(FieldType.ID)) == 5

    def test_reused_for_same_collection(self, registros) -> None:
        indice = FieldIndex(registros)
        assert FieldIndex.para(registros, indice) is indice

    def test_rebuilt_for_new_collection(self, registros) -> None:
        indice = FieldIndex(registros)
        nuevo = FieldIndex.para(list(registros), indice)
        assert nuevo is not indice


# ── MatchClassifier ──────────────────────────────────────────────────


class TestMatchClassifier:
    def test_free_text_falls_back_to_descripcion(self, registros) -> None:
        assert MatchClassifier().classify('PROYECTOR', registros) is FieldType.DESCRIPCION

    def test_id_beats_everything(self, registros) -> None:
        assert MatchClassifier().classify('mue-0003', registros) is FieldType.ID

    def test_area_before_director(self) -> None:
        registros = [
            hacer_registro(1, area='Sistemas Norte', usufinal='Pedro Sistemas'),
        ]
        assert MatchClassifier().classify('sistemas', registros) is FieldType.AREA

    def test_exact_director_beats_area_substring(self) -> None:
        registros = [
            hacer_registro(1, area='Oficina de Ana', usufinal='Lucía'),
            hacer_registro(2, area='Almacén', usufinal='ana'),
        ]
        # contención en área = 3, exacta en director = 4
        assert MatchClassifier().classify('ana', registros) is FieldType.USUFINAL

    def test_resguardante(self, registros) -> None:
        assert MatchClassifier().classify('carlos', registros) is FieldType.RESGUARDANTE

    def test_fallback_order_rubro_after_descripcion(self, registros) -> None:
        assert MatchClassifier().classify('mobiliario', registros) is FieldType.RUBRO

    def test_estatus(self, registros) -> None:
        assert MatchClassifier().classify('inactivo', registros) is FieldType.ESTATUS

    def test_origen_only_in_unified_view(self, registros) -> None:
        assert MatchClassifier().classify('itea', registros) is None
        assert MatchClassifier(CAMPOS_UNIFICADOS).classify('itea', registros) is FieldType.ORIGEN

    @pytest.mark.parametrize('consulta', ['', '   ', None])
    def test_blank_query(self, registros, consulta) -> None:
        assert MatchClassifier().classify(consulta, registros) is None

    def test_empty_collection(self) -> None:
        assert MatchClassifier().classify('proyector', []) is None

    def test_no_match(self, registros) -> None:
        assert MatchClassifier().classify('zzzz', registros) is None


# ── SuggestionEngine ─────────────────────────────────────────────────


class TestSuggestionEngine:
    def test_descripcion_suggestion(self, registros) -> None:
        sugerencias = SuggestionEngine().suggest('PROYECTOR', FieldIndex(registros))
        assert Suggestion('Proyector Epson X200', FieldType.DESCRIPCION) in sugerencias

    def test_minimum_length(self, registros) -> None:
        assert SuggestionEngine().suggest('p', FieldIndex(registros)) == []

    def test_no_index(self) -> None:
        assert SuggestionEngine().suggest('proyector', None) == []

    def test_dedup_case_insensitive_per_field(self) -> None:
        registros = [
            hacer_registro(1, resguardante='Carlos Ruiz'),
            hacer_registro(2, resguardante='CARLOS RUIZ'),
            hacer_registro(3, usufinal='Carlos Ruiz'),
        ]
        sugerencias = SuggestionEngine().suggest('carlos', FieldIndex(registros))
        assert [(s.value, s.type) for s in sugerencias] == [
            ('Carlos Ruiz', FieldType.USUFINAL),
            ('Carlos Ruiz', FieldType.RESGUARDANTE),
        ]

    def test_prefix_matches_first_and_stable(self) -> None:
        registros = [
            hacer_registro(1, descripcion='Mesa para proyector'),
            hacer_registro(2, descripcion='Proyector Epson'),
            hacer_registro(3, descripcion='Pantalla de proyector'),
            hacer_registro(4, descripcion='Proyector BenQ'),
        ]
        valores = [s.value for s in SuggestionEngine().suggest('proyector', FieldIndex(registros))]
        assert valores == ['Proyector Epson', 'Proyector BenQ', 'Mesa para proyector', 'Pantalla de proyector']

    def test_display_cap(self) -> None:
        registros = [hacer_registro(i, descripcion=f'Silla modelo {i}') for i in range(1, 20)]
        sugerencias = SuggestionEngine().suggest('silla', FieldIndex(registros))
        assert len(sugerencias) == 7
        assert len({(s.type, s.value.lower()) for s in sugerencias}) == 7

    def test_scan_cap_limits_candidates_before_sort(self) -> None:
        # los 10 primeros contienen el término sin empezar con él; el prefijo llega tarde
        registros = [hacer_registro(i, descripcion=f'Mesa con silla {i}') for i in range(1, 11)]
        registros.append(hacer_registro(11, descripcion='Silla plegable'))
        valores = [s.value for s in SuggestionEngine().suggest('silla', FieldIndex(registros))]
        assert 'Silla plegable' not in valores

    def test_label(self) -> None:
        assert Suggestion('X', FieldType.USUFINAL).to_dict() == {
            'value': 'X', 'type': 'usufinal', 'label': 'Director'
        }
