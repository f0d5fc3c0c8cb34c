"""Tests for registros: boundary normalization of area/director shapes."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from registros import AreaRef, Registro, normalizar_area, normalizar_director, registro_desde_dict


class TestNormalizarArea:
    def test_plain_string(self) -> None:
        assert normalizar_area(' Sistemas ') == AreaRef(id=None, nombre='Sistemas')

    def test_joined_object(self) -> None:
        assert normalizar_area({'id_area': 4, 'nombre': 'Tesorería'}) == AreaRef(id=4, nombre='Tesorería')

    def test_blank_is_none(self) -> None:
        assert normalizar_area('') is None
        assert normalizar_area({'id': 3, 'nombre': None}) is None
        assert normalizar_area(None) is None


class TestNormalizarDirector:
    def test_both_shapes_agree(self) -> None:
        assert normalizar_director('Juan') == ('Juan', None)
        assert normalizar_director({'id': 1, 'nombre': 'Juan'}) == ('Juan', 1)


class TestRegistro:
    def test_from_dict_with_joined_shapes(self) -> None:
        registro = registro_desde_dict({
            'id': 7,
            'id_inv': 'MUE-0007',
            'area': {'id': 2, 'nombre': 'RH'},
            'directorio': {'id_directorio': 5, 'nombre': 'Ana'},
            'columna_extra': 'se ignora',
        })
        assert registro.area == AreaRef(2, 'RH')
        assert registro.usufinal == 'Ana'
        assert registro.id_directorio == 5

    def test_from_dict_with_plain_shapes(self) -> None:
        registro = registro_desde_dict({'id': 7, 'id_inv': 'MUE-0007', 'area': 'RH', 'usufinal': 'Ana'})
        assert registro.area == AreaRef(None, 'RH')
        assert registro.usufinal == 'Ana'

    def test_field_access(self) -> None:
        registro = Registro(id=1, id_inv='MUE-0001', area=AreaRef(1, 'RH'), descripcion='')
        assert registro.valor_de('id') == 'MUE-0001'
        assert registro.texto_de('area') == 'RH'
        assert registro.texto_de('descripcion') is None
        assert registro.texto_de('resguardante') is None

    def test_to_dict_is_json_friendly(self) -> None:
        registro = Registro(id=1, id_inv='MUE-0001', valor=Decimal('10.50'), f_adq=date(2020, 1, 2),
                            area=AreaRef(1, 'RH'))
        data = registro.to_dict()
        assert data['valor'] == 10.5
        assert data['f_adq'] == '2020-01-02'
        assert data['area'] == {'id': 1, 'nombre': 'RH'}
