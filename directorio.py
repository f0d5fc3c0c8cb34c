# directorio.py
"""Consultas sobre los catálogos de directores y áreas ya cargados en memoria."""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from helpers import limpiar
from registros import AreaRef


@dataclass(frozen=True)
class DirectorRef:
    id: int
    nombre: str
    puesto: Optional[str] = None

    def to_dict(self):
        return {'id': self.id, 'nombre': self.nombre, 'puesto': self.puesto}


def buscar_director(directores: Iterable[DirectorRef], id_directorio) -> Optional[DirectorRef]:
    try:
        id_directorio = int(id_directorio)
    except (TypeError, ValueError):
        return None
    return next((d for d in directores if d.id == id_directorio), None)


def sugerir_director(directores: Sequence[DirectorRef], termino: Optional[str]) -> Optional[DirectorRef]:
    """
    Director que mejor corresponde a ``termino``: primero coincidencia exacta
    del nombre limpio; si no, el que comparte más palabras (una palabra de más
    de 3 letras también cuenta sin su última letra).
    """
    objetivo = limpiar(termino)
    if not objetivo:
        return None

    for director in directores:
        if limpiar(director.nombre) == objetivo:
            return director

    partes = objetivo.split()
    mejor, mejor_cuenta = None, 0
    for director in directores:
        nombre = limpiar(director.nombre)
        cuenta = sum(
            1 for parte in partes
            if parte in nombre or (len(parte) > 3 and parte[:-1] in nombre)
        )
        if cuenta > mejor_cuenta:
            mejor, mejor_cuenta = director, cuenta
    return mejor


def areas_de_director(id_directorio, relaciones: Iterable[Tuple[int, int]],
                      areas: Iterable[AreaRef]) -> List[AreaRef]:
    """Une en memoria la relación director-área con el catálogo de áreas."""
    ids = {id_area for id_dir, id_area in relaciones if id_dir == id_directorio}
    return sorted((a for a in areas if a.id in ids), key=lambda a: limpiar(a.nombre))
