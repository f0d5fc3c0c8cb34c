# seleccion.py
"""
Selección de muebles para un resguardo.

Todos los artículos de un mismo resguardo deben compartir director (usufinal)
y área. El primer artículo agregado fija ambos valores, aunque sean nulos; un
nulo fijado también tiene que coincidir. Los rechazos se devuelven como valores
(``SelectionResult``), nunca como excepciones, y no modifican la selección.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from registros import Registro

CAMPOS_FORMULARIO = ('director_id', 'director', 'area', 'puesto')


@dataclass(frozen=True)
class Conflicto:
    campo: str           # 'usufinal', 'area' o 'pagina'
    valor: Optional[str]
    mensaje: str

    def to_dict(self):
        return {'campo': self.campo, 'valor': self.valor, 'mensaje': self.mensaje}


@dataclass(frozen=True)
class SelectionResult:
    ok: bool
    conflicto: Optional[Conflicto] = None


def _clave(valor: Optional[str]) -> Optional[str]:
    if valor is None:
        return None
    valor = valor.strip().upper()
    return valor or None


def clave_usufinal(registro: Registro) -> Optional[str]:
    return _clave(registro.usufinal)


def clave_area(registro: Registro) -> Optional[str]:
    return _clave(registro.area.nombre if registro.area else None)


class SelectionState:
    def __init__(self):
        self.registros: List[Registro] = []
        self.usufinal_conflict: Optional[str] = None
        self.area_conflict: Optional[str] = None
        self.resguardantes: Dict[int, str] = {}
        self.formulario: Dict[str, Any] = {}

    # --- Consultas ---

    def __len__(self):
        return len(self.registros)

    def __contains__(self, id_registro):
        return any(r.id == id_registro for r in self.registros)

    @property
    def ids(self) -> List[int]:
        return [r.id for r in self.registros]

    def requeridos(self):
        """(usufinal, área) fijados por el primer artículo, o None si está vacía."""
        if not self.registros:
            return None
        primero = self.registros[0]
        return clave_usufinal(primero), clave_area(primero)

    # --- Mutaciones ---

    def try_add(self, registro: Registro) -> SelectionResult:
        if registro.id in self:
            return SelectionResult(ok=True)

        requeridos = self.requeridos()
        if requeridos is None:
            self.registros.append(registro)
            self._fijar_formulario(registro)
            return SelectionResult(ok=True)

        usufinal, area = requeridos
        if clave_usufinal(registro) != usufinal:
            self.usufinal_conflict = registro.usufinal
            return SelectionResult(ok=False, conflicto=Conflicto(
                campo='usufinal',
                valor=registro.usufinal,
                mensaje=f"El artículo {registro.id_inv} pertenece a '{registro.usufinal or 'SIN DIRECTOR'}'; "
                        f"la selección es de '{self.registros[0].usufinal or 'SIN DIRECTOR'}'."
            ))
        if clave_area(registro) != area:
            nombre_area = registro.area.nombre if registro.area else None
            actual = self.registros[0].area.nombre if self.registros[0].area else None
            self.area_conflict = nombre_area
            return SelectionResult(ok=False, conflicto=Conflicto(
                campo='area',
                valor=nombre_area,
                mensaje=f"El artículo {registro.id_inv} está en el área '{nombre_area or 'SIN ÁREA'}'; "
                        f"la selección es del área '{actual or 'SIN ÁREA'}'."
            ))

        self.registros.append(registro)
        return SelectionResult(ok=True)

    def remove(self, id_registro) -> bool:
        antes = len(self.registros)
        self.registros = [r for r in self.registros if r.id != id_registro]
        if len(self.registros) == antes:
            return False
        self.resguardantes.pop(id_registro, None)
        if not self.registros:
            self._liberar()
        return True

    def toggle(self, registro: Registro) -> SelectionResult:
        if registro.id in self:
            self.remove(registro.id)
            return SelectionResult(ok=True)
        return self.try_add(registro)

    def can_select_all_page(self, pagina: Sequence[Registro]) -> bool:
        return self._conflicto_de_pagina(pagina) is None and len(pagina) > 0

    def select_all_visible(self, pagina: Sequence[Registro]) -> SelectionResult:
        """Todo o nada: si algún artículo de la página no cuadra, no se agrega ninguno."""
        if not pagina:
            return SelectionResult(ok=True)
        conflicto = self._conflicto_de_pagina(pagina)
        if conflicto is not None:
            return SelectionResult(ok=False, conflicto=conflicto)
        for registro in pagina:
            self.try_add(registro)
        return SelectionResult(ok=True)

    def deselect_page(self, pagina: Iterable[Registro]):
        for registro in list(pagina):
            self.remove(registro.id)

    def clear(self):
        self.registros = []
        self._liberar()

    def clear_conflicts(self):
        self.usufinal_conflict = None
        self.area_conflict = None

    def asignar_resguardante(self, id_registro, nombre: Optional[str]) -> bool:
        if id_registro not in self:
            return False
        if nombre and nombre.strip():
            self.resguardantes[id_registro] = nombre.strip()
        else:
            self.resguardantes.pop(id_registro, None)
        return True

    def page_selection_state(self, pagina: Sequence[Registro]):
        seleccionados = [r for r in pagina if r.id in self]
        return {
            'todos': bool(pagina) and len(seleccionados) == len(pagina),
            'alguno': bool(seleccionados),
            'puede_seleccionar_todos': self.can_select_all_page(pagina),
        }

    def resync(self, snapshot: Mapping[int, Registro]):
        """
        Revalida contra una colección recargada. Los artículos que ya no existen
        se eliminan; los demás se sustituyen por su versión actual y se vuelven a
        insertar en orden, descartando los que ahora generen conflicto.
        """
        anteriores = list(self.registros)
        resguardantes = dict(self.resguardantes)
        formulario = dict(self.formulario)
        self.registros = []
        eliminados, descartados = [], []
        for registro in anteriores:
            actual = snapshot.get(registro.id)
            if actual is None:
                eliminados.append(registro.id)
                continue
            if not self.try_add(actual).ok:
                descartados.append(registro.id)
        self.clear_conflicts()
        if self.registros:
            self.formulario = formulario
            self.resguardantes = {k: v for k, v in resguardantes.items() if k in self}
        else:
            self._liberar()
        return {'eliminados': eliminados, 'descartados': descartados}

    # --- Internos ---

    def _conflicto_de_pagina(self, pagina: Sequence[Registro]) -> Optional[Conflicto]:
        if not pagina:
            return None
        requeridos = self.requeridos()
        if requeridos is None:
            requeridos = (clave_usufinal(pagina[0]), clave_area(pagina[0]))
        usufinal, area = requeridos
        for registro in pagina:
            if clave_usufinal(registro) != usufinal or clave_area(registro) != area:
                return Conflicto(
                    campo='pagina',
                    valor=None,
                    mensaje='No puedes seleccionar todos los artículos de la página porque '
                            'no pertenecen al mismo responsable o área.'
                )
        return None

    def _fijar_formulario(self, registro: Registro):
        if self.formulario.get('director_id') is None and registro.id_directorio is not None:
            self.formulario['director_id'] = registro.id_directorio
        if not self.formulario.get('area') and registro.area:
            self.formulario['area'] = registro.area.nombre
        if not self.formulario.get('director') and registro.usufinal:
            self.formulario['director'] = registro.usufinal

    def _liberar(self):
        self.resguardantes = {}
        for campo in CAMPOS_FORMULARIO:
            self.formulario.pop(campo, None)

    # --- Serialización para la sesión ---

    def to_dict(self):
        return {
            'ids': self.ids,
            'usufinal_conflict': self.usufinal_conflict,
            'area_conflict': self.area_conflict,
            'resguardantes': {str(k): v for k, v in self.resguardantes.items()},
            'formulario': dict(self.formulario),
        }

    @classmethod
    def from_dict(cls, data, snapshot: Mapping[int, Registro]):
        """
        Reconstruye la selección a partir de la sesión y de la colección vigente.
        Devuelve (estado, cambios) donde ``cambios`` es el resultado de ``resync``.
        """
        state = cls()
        data = data or {}
        # Se cargan los registros guardados tal cual y luego se revalidan contra la colección
        state.registros = [snapshot.get(i) or Registro(id=i, id_inv='') for i in data.get('ids') or []]
        state.resguardantes = {int(k): v for k, v in (data.get('resguardantes') or {}).items()}
        state.formulario = dict(data.get('formulario') or {})
        cambios = state.resync(snapshot)
        state.usufinal_conflict = data.get('usufinal_conflict')
        state.area_conflict = data.get('area_conflict')
        return state, cambios
