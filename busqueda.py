# busqueda.py
"""
Motor de la caja de búsqueda (omnibox) del inventario.

- ``FieldIndex``: vectores de texto por campo, precalculados por colección.
- ``MatchClassifier``: decide a qué campo apunta con más probabilidad el texto.
- ``SuggestionEngine``: sugerencias (valor, campo) sin duplicados, con tope y
  con las coincidencias por prefijo primero.

Todo es síncrono y puro: no hay estado oculto entre llamadas.
"""
import enum
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from config import SUGGESTION_LIMIT, SUGGESTION_MIN_CHARS, SUGGESTION_SCAN_LIMIT
from registros import Registro


class FieldType(str, enum.Enum):
    ID = 'id'
    DESCRIPCION = 'descripcion'
    RUBRO = 'rubro'
    ESTADO = 'estado'
    ESTATUS = 'estatus'
    AREA = 'area'
    USUFINAL = 'usufinal'
    RESGUARDANTE = 'resguardante'
    ORIGEN = 'origen'

    @classmethod
    def parse(cls, value) -> Optional['FieldType']:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


ETIQUETAS = {
    FieldType.ID: 'ID',
    FieldType.DESCRIPCION: 'Descripción',
    FieldType.RUBRO: 'Rubro',
    FieldType.ESTADO: 'Estado',
    FieldType.ESTATUS: 'Estatus',
    FieldType.AREA: 'Área',
    FieldType.USUFINAL: 'Director',
    FieldType.RESGUARDANTE: 'Resguardante',
    FieldType.ORIGEN: 'Origen',
}


def _accesor(campo: FieldType) -> Callable[[Registro], Optional[str]]:
    return lambda registro: registro.texto_de(campo.value)


# Orden declarado de prioridad; lo usan las sugerencias y el filtrado libre.
CAMPOS_BASE: Dict[FieldType, Callable[[Registro], Optional[str]]] = {
    campo: _accesor(campo) for campo in (
        FieldType.ID,
        FieldType.AREA,
        FieldType.USUFINAL,
        FieldType.RESGUARDANTE,
        FieldType.DESCRIPCION,
        FieldType.RUBRO,
        FieldType.ESTADO,
        FieldType.ESTATUS,
    )
}

# Vista unificada de varias fuentes: agrega el origen del registro.
CAMPOS_UNIFICADOS: Dict[FieldType, Callable[[Registro], Optional[str]]] = dict(CAMPOS_BASE)
CAMPOS_UNIFICADOS[FieldType.ORIGEN] = _accesor(FieldType.ORIGEN)


@dataclass(frozen=True)
class Suggestion:
    value: str
    type: FieldType

    @property
    def label(self) -> str:
        return ETIQUETAS[self.type]

    def to_dict(self):
        return {'value': self.value, 'type': self.type.value, 'label': self.label}


def normalizar_consulta(texto: Optional[str]) -> str:
    return (texto or '').strip().lower()


class FieldIndex:
    """
    Vectores de valores no vacíos por campo, en el orden de la colección.
    Se recalcula sólo cuando cambia la colección (se compara por identidad).
    """

    def __init__(self, registros: Sequence[Registro], campos=None):
        self.campos = campos or CAMPOS_BASE
        self.registros = registros
        self.vectores: Dict[FieldType, List[str]] = {
            campo: [v for v in (accesor(r) for r in registros) if v]
            for campo, accesor in self.campos.items()
        }

    def valores(self, campo: FieldType) -> List[str]:
        return self.vectores.get(campo, [])

    def vigente_para(self, registros: Sequence[Registro]) -> bool:
        return registros is self.registros

    @classmethod
    def para(cls, registros, anterior: Optional['FieldIndex'] = None, campos=None) -> 'FieldIndex':
        """Reutiliza ``anterior`` si se construyó sobre la misma colección."""
        if anterior is not None and anterior.vigente_para(registros) and (campos is None or anterior.campos is campos):
            return anterior
        return cls(registros, campos)


class MatchClassifier:
    """
    Clasifica el texto libre en un único FieldType (o None).

    Primero los campos estructurados, por clase de prioridad:
    ID > Área > Director/Resguardante. Coincidencia exacta puntúa más que
    contención. Si ninguno coincide se recurre, en orden estricto, a
    descripción, rubro, estado y estatus (y origen en la vista unificada):
    gana la primera contención.
    """

    # (exacta, contención) por clase
    PUNTAJES = {
        FieldType.ID: (6, 4),
        FieldType.AREA: (5, 3),
        FieldType.USUFINAL: (4, 2),
        FieldType.RESGUARDANTE: (4, 2),
    }
    ESTRUCTURADOS = (FieldType.ID, FieldType.AREA, FieldType.USUFINAL, FieldType.RESGUARDANTE)
    RESPALDO = (FieldType.DESCRIPCION, FieldType.RUBRO, FieldType.ESTADO, FieldType.ESTATUS, FieldType.ORIGEN)

    def __init__(self, campos=None):
        self.campos = campos or CAMPOS_BASE
        self.puntaje_maximo = max(
            self.PUNTAJES[c][0] for c in self.ESTRUCTURADOS if c in self.campos
        ) if any(c in self.campos for c in self.ESTRUCTURADOS) else 0

    def _puntuar(self, termino: str, valor: Optional[str], campo: FieldType) -> int:
        if not valor:
            return 0
        valor = valor.lower()
        if valor == termino:
            return self.PUNTAJES[campo][0]
        if termino in valor:
            return self.PUNTAJES[campo][1]
        return 0

    def classify(self, consulta: Optional[str], registros: Iterable[Registro]) -> Optional[FieldType]:
        termino = normalizar_consulta(consulta)
        if not termino:
            return None
        registros = list(registros)
        if not registros:
            return None

        estructurados = [c for c in self.ESTRUCTURADOS if c in self.campos]
        mejor: Tuple[Optional[FieldType], int] = (None, 0)
        for registro in registros:
            for campo in estructurados:
                puntaje = self._puntuar(termino, self.campos[campo](registro), campo)
                if puntaje > mejor[1]:
                    mejor = (campo, puntaje)
            if mejor[1] >= self.puntaje_maximo:
                break
        if mejor[0] is not None:
            return mejor[0]

        for campo in self.RESPALDO:
            accesor = self.campos.get(campo)
            if accesor is None:
                continue
            for registro in registros:
                valor = accesor(registro)
                if valor and termino in valor.lower():
                    return campo
        return None


class SuggestionEngine:
    """Sugerencias del omnibox a partir de un ``FieldIndex``."""

    def __init__(self, limite=SUGGESTION_LIMIT, limite_busqueda=SUGGESTION_SCAN_LIMIT,
                 minimo=SUGGESTION_MIN_CHARS):
        self.limite = limite
        self.limite_busqueda = max(limite_busqueda, limite)
        self.minimo = minimo

    def suggest(self, consulta: Optional[str], indice: Optional[FieldIndex]) -> List[Suggestion]:
        termino = normalizar_consulta(consulta)
        if indice is None or len(termino) < self.minimo:
            return []

        vistos = set()
        sugerencias: List[Suggestion] = []
        for campo in indice.campos:
            if len(sugerencias) >= self.limite_busqueda:
                break
            for valor in indice.valores(campo):
                valor_lower = valor.lower()
                if termino not in valor_lower:
                    continue
                clave = (campo, valor_lower)
                if clave in vistos:
                    continue
                vistos.add(clave)
                sugerencias.append(Suggestion(value=valor, type=campo))
                if len(sugerencias) >= self.limite_busqueda:
                    break

        # sort es estable: dentro de cada grupo se conserva el orden de recolección
        sugerencias.sort(key=lambda s: not s.value.lower().startswith(termino))
        return sugerencias[:self.limite]
