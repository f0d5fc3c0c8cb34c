# filtros.py
"""
Filtros activos del omnibox y cálculo del conjunto visible de muebles.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from busqueda import CAMPOS_BASE, CAMPOS_UNIFICADOS, FieldType, Suggestion, normalizar_consulta
from config import DEFAULT_SORT, ROWS_PER_PAGE, SEARCH_SETTLE_SECONDS, SORTABLE_FIELDS
from helpers import SettledValue, clave_texto
from registros import Registro


@dataclass(frozen=True)
class ActiveFilter:
    term: str
    type: FieldType

    def to_dict(self):
        return {'term': self.term, 'type': self.type.value}


class ActiveFilterSet:
    """
    Lista ordenada de filtros confirmados. Se permiten duplicados; cada filtro
    se identifica por su posición. No valida nada: el tipo es responsabilidad
    de quien llama. ``on_change`` se invoca tras cada mutación.
    """

    def __init__(self, filtros: Iterable[ActiveFilter] = (), on_change: Optional[Callable[[], None]] = None):
        self._filtros: List[ActiveFilter] = list(filtros)
        self.on_change = on_change

    def _notificar(self):
        if self.on_change is not None:
            self.on_change()

    def add(self, term: str, type: FieldType) -> ActiveFilter:
        filtro = ActiveFilter(term=term, type=type)
        self._filtros.append(filtro)
        self._notificar()
        return filtro

    def remove_at(self, index: int) -> bool:
        if index < 0 or index >= len(self._filtros):
            return False
        del self._filtros[index]
        self._notificar()
        return True

    def clear_all(self):
        self._filtros = []
        self._notificar()

    def __iter__(self):
        return iter(self._filtros)

    def __len__(self):
        return len(self._filtros)

    def __getitem__(self, index):
        return self._filtros[index]

    def as_tuple(self) -> Tuple[ActiveFilter, ...]:
        return tuple(self._filtros)

    def to_list(self):
        return [f.to_dict() for f in self._filtros]


# --- Filtrado y orden ---

def _contiene(registro: Registro, campo: FieldType, termino: str) -> bool:
    valor = registro.texto_de(campo.value)
    return bool(valor) and termino in valor.lower()


def cumple_filtros(registro: Registro, filtros: Iterable[ActiveFilter]) -> bool:
    """AND de todos los filtros; un filtro con término vacío no restringe."""
    for filtro in filtros:
        termino = filtro.term.lower()
        if termino and not _contiene(registro, filtro.type, termino):
            return False
    return True


def ordenar_registros(registros: Sequence[Registro], campo: str, direccion: str = 'asc') -> List[Registro]:
    """
    Orden estable. Los valores nulos o vacíos van al final sin importar la dirección;
    el texto se compara sin acentos ni mayúsculas y lo demás con su orden nativo.
    """
    con_valor = [r for r in registros if r.texto_de(campo) is not None]
    sin_valor = [r for r in registros if r.texto_de(campo) is None]

    def llave(registro):
        valor = registro.valor_de(campo)
        return clave_texto(valor) if isinstance(valor, str) else valor

    con_valor.sort(key=llave, reverse=(direccion == 'desc'))
    return con_valor + sin_valor


class RecordFilterer:
    """
    Función pura de (colección, filtros activos, término libre, orden).
    Guarda sólo el último resultado, indexado por esas cuatro entradas.
    """

    def __init__(self, campos=None):
        self.campos = campos or CAMPOS_BASE
        self._memo = None

    def apply(self, registros: Sequence[Registro], filtros: Iterable[ActiveFilter] = (),
              termino: Optional[str] = '', orden: Tuple[str, str] = DEFAULT_SORT) -> List[Registro]:
        filtros = tuple(filtros)
        termino = normalizar_consulta(termino)
        llave = (id(registros), len(registros), filtros, termino, tuple(orden))
        if self._memo is not None and self._memo[0] == llave and self._memo[1] is registros:
            return list(self._memo[2])

        visibles = []
        for registro in registros:
            if not cumple_filtros(registro, filtros):
                continue
            if termino and not any(_contiene(registro, campo, termino) for campo in self.campos):
                continue
            visibles.append(registro)

        resultado = ordenar_registros(visibles, orden[0], orden[1])
        self._memo = (llave, registros, resultado)
        return list(resultado)


def paginar(items: Sequence, page: int, rows_per_page: int = ROWS_PER_PAGE):
    """Devuelve (elementos de la página, página efectiva, total de páginas)."""
    total_pages = max(1, math.ceil(len(items) / rows_per_page)) if rows_per_page > 0 else 1
    page = min(max(1, page), total_pages)
    inicio = (page - 1) * rows_per_page
    return list(items[inicio:inicio + rows_per_page]), page, total_pages


# --- Estado de búsqueda por sesión ---

class SearchState:
    """
    Estado explícito de la búsqueda de una sesión (un formulario abierto):
    término en vivo, filtros activos, orden y página. Cualquier cambio en los
    filtros regresa a la primera página.
    """

    def __init__(self, settle_seconds=SEARCH_SETTLE_SECONDS, unificado=False, clock=None):
        self.termino = SettledValue(settle_seconds, clock=clock or time.time)
        self.filtros = ActiveFilterSet(on_change=self._reiniciar_pagina)
        self.orden = DEFAULT_SORT
        self.page = 1
        self.unificado = unificado

    @property
    def campos(self):
        return CAMPOS_UNIFICADOS if self.unificado else CAMPOS_BASE

    def _reiniciar_pagina(self):
        self.page = 1

    def set_term(self, texto):
        self.termino.push(texto or '')
        self.page = 1

    def deferred_term(self):
        return self.termino.current()

    def set_sort(self, campo, direccion='asc'):
        if campo not in SORTABLE_FIELDS or direccion not in ('asc', 'desc'):
            return False
        self.orden = (campo, direccion)
        return True

    def save_current_filter(self, match_type: Optional[FieldType]) -> Optional[ActiveFilter]:
        """Confirma el término en vivo como filtro si fue clasificado."""
        termino = self.termino.raw
        if not termino or match_type is None:
            return None
        filtro = self.filtros.add(termino, match_type)
        self.termino.reset()
        return filtro

    def commit_suggestion(self, sugerencia: Suggestion) -> ActiveFilter:
        filtro = self.filtros.add(sugerencia.value, sugerencia.type)
        self.termino.reset()
        return filtro

    def clear_all(self):
        self.filtros.clear_all()
        self.termino.reset()

    def to_dict(self):
        return {
            'termino': self.termino.to_dict(),
            'filtros': self.filtros.to_list(),
            'orden': list(self.orden),
            'page': self.page,
            'unificado': self.unificado,
        }

    @classmethod
    def from_dict(cls, data, settle_seconds=SEARCH_SETTLE_SECONDS, clock=None):
        state = cls(settle_seconds=settle_seconds, unificado=bool((data or {}).get('unificado')), clock=clock)
        if not data:
            return state
        state.termino.restore(data.get('termino') or {})
        filtros = []
        for item in data.get('filtros') or []:
            tipo = FieldType.parse(item.get('type'))
            if tipo is not None:
                filtros.append(ActiveFilter(term=item.get('term', ''), type=tipo))
        state.filtros = ActiveFilterSet(filtros, on_change=state._reiniciar_pagina)
        orden = data.get('orden') or DEFAULT_SORT
        state.orden = (orden[0], orden[1])
        state.page = int(data.get('page') or 1)
        return state
