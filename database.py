# database.py
"""
Fuente de datos del inventario sobre SQLAlchemy.

Es la única capa que habla con la base de datos: traduce filas a ``Registro``,
y cualquier ``SQLAlchemyError`` se convierte en ``DataSourceError`` después de
hacer rollback.
"""
import logging
from collections import namedtuple
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from extensions import db
from directorio import DirectorRef
from helpers import map_operator
from models import Area, Directorio, Folio, Mueble, Resguardo, directorio_areas
from registros import AreaRef, registro_desde_mueble

logger = logging.getLogger(__name__)

ContadorFolio = namedtuple('ContadorFolio', ['tipo', 'prefijo', 'consecutivo', 'ancho'])


class DataSourceError(Exception):
    """Falla de E/S contra la fuente de datos, con un mensaje legible para el usuario."""

    def __init__(self, message, original=None):
        super().__init__(message)
        self.message = message
        self.original = original


class FolioError(DataSourceError):
    pass


class FolioNoConfigurado(FolioError):
    """No existe contador para el tipo solicitado."""


@dataclass(frozen=True)
class Condicion:
    campo: str
    valor: object
    operador: str = 'ilike'


@dataclass(frozen=True)
class CualquierCondicion:
    """OR de varias condiciones."""
    condiciones: Tuple[Condicion, ...]


def _columna(campo):
    if campo in ('id', 'id_inv'):
        return Mueble.id_inv
    if campo == 'id_registro':
        return Mueble.id
    if campo == 'area':
        return Area.nombre
    if campo in ('usufinal', 'director'):
        return Directorio.nombre
    columna = getattr(Mueble, campo, None)
    if columna is None:
        raise ValueError(f"Campo desconocido: {campo}")
    return columna


def _expresion(condicion):
    if isinstance(condicion, CualquierCondicion):
        return or_(*[_expresion(c) for c in condicion.condiciones])
    columna = _columna(condicion.campo)
    if map_operator(condicion.operador) == 'ilike':
        return columna.ilike(f"%{condicion.valor}%")
    if condicion.valor is None:
        return columna.is_(None)
    return columna == condicion.valor


class MuebleDataSource:

    def _fallar(self, mensaje, error):
        db.session.rollback()
        logger.error("%s: %s", mensaje, error)
        raise DataSourceError(mensaje, original=error) from error

    # --- Consultas ---

    def query(self, filtros: Iterable = (), orden: Optional[Tuple[str, str]] = None,
              rango: Optional[Tuple[int, int]] = None):
        """
        Devuelve ``(registros, total)``. ``filtros`` se combinan con AND;
        ``orden`` es ``(campo, 'asc'|'desc')`` y ``rango`` es ``(offset, limit)``.
        """
        try:
            consulta = (
                db.session.query(Mueble)
                .outerjoin(Area, Mueble.id_area == Area.id_area)
                .outerjoin(Directorio, Mueble.id_directorio == Directorio.id_directorio)
            )
            condiciones = [_expresion(f) for f in filtros]
            if condiciones:
                consulta = consulta.filter(and_(*condiciones))

            total = consulta.count()

            if orden:
                columna = _columna(orden[0])
                consulta = consulta.order_by(columna.desc() if orden[1] == 'desc' else columna.asc(), Mueble.id)
            else:
                consulta = consulta.order_by(Mueble.id)
            if rango:
                offset, limit = rango
                consulta = consulta.offset(offset).limit(limit)

            muebles = consulta.options(selectinload(Mueble.area), selectinload(Mueble.directorio)).all()
            return [registro_desde_mueble(m) for m in muebles], total
        except SQLAlchemyError as e:
            self._fallar("Error al consultar los muebles", e)

    def cargar_todos(self):
        registros, _ = self.query()
        return registros

    def registros_por_id(self, ids: Sequence[int]):
        if not ids:
            return {}
        registros, _ = self.query([CualquierCondicion(tuple(Condicion('id_registro', i, 'eq') for i in ids))])
        return {r.id: r for r in registros}

    # --- Escrituras ---

    def _area_por_nombre(self, nombre):
        area = db.session.query(Area).filter(func.lower(Area.nombre) == nombre.strip().lower()).first()
        if area is None:
            # Igual que en la carga masiva: el área se busca o se crea
            area = Area(nombre=nombre.strip())
            db.session.add(area)
            db.session.flush()
        return area

    def update(self, id_mueble, cambios, commit=True):
        """
        Aplica una actualización parcial. ``area`` puede ser texto, ``{id, nombre}``
        o ``AreaRef``; el director se indica con ``id_directorio``.
        """
        try:
            mueble = db.session.get(Mueble, id_mueble)
            if mueble is None:
                raise DataSourceError(f"El mueble {id_mueble} no existe.")
            for campo, valor in cambios.items():
                if campo == 'area':
                    if valor is None:
                        mueble.id_area = None
                        continue
                    nombre = valor if isinstance(valor, str) else (
                        valor.get('nombre') if isinstance(valor, dict) else valor.nombre)
                    mueble.area = self._area_por_nombre(nombre)
                elif campo == 'id_directorio':
                    if valor is not None and db.session.get(Directorio, valor) is None:
                        raise DataSourceError(f"El director {valor} no existe.")
                    mueble.id_directorio = valor
                elif hasattr(Mueble, campo) and campo not in ('id', 'directorio', 'resguardos'):
                    setattr(mueble, campo, valor)
                else:
                    raise DataSourceError(f"Campo no actualizable: {campo}")
            db.session.flush()
            if commit:
                db.session.commit()
        except DataSourceError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            self._fallar("Error al actualizar el mueble", e)

    def insertar_resguardo(self, **campos):
        try:
            resguardo = Resguardo(**campos)
            db.session.add(resguardo)
            db.session.flush()
            return resguardo.id
        except SQLAlchemyError as e:
            self._fallar("Error al guardar el resguardo", e)

    def confirmar(self):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            self._fallar("Error al confirmar los cambios", e)

    def revertir(self):
        db.session.rollback()

    # --- Folios ---

    def leer_contador(self, tipo) -> Optional[ContadorFolio]:
        try:
            fila = db.session.execute(
                select(Folio.tipo, Folio.prefijo, Folio.consecutivo, Folio.ancho).where(Folio.tipo == tipo)
            ).first()
        except SQLAlchemyError as e:
            self._fallar("Error al obtener folio", e)
        if fila is None:
            return None
        return ContadorFolio(*fila)

    def atomic_increment(self, tipo) -> ContadorFolio:
        """
        Incrementa el consecutivo en un solo UPDATE. El renglón queda bloqueado
        por la transacción hasta el commit, así que la lectura posterior ve el
        valor propio y no el de otra sesión.
        """
        try:
            resultado = db.session.execute(
                update(Folio)
                .where(Folio.tipo == tipo)
                .values(consecutivo=Folio.consecutivo + 1)
                .execution_options(synchronize_session=False)
            )
            if resultado.rowcount == 0:
                db.session.rollback()
                raise FolioNoConfigurado(f"No se encontró configuración para tipo: {tipo}")
            fila = db.session.execute(
                select(Folio.tipo, Folio.prefijo, Folio.consecutivo, Folio.ancho).where(Folio.tipo == tipo)
            ).one()
            db.session.commit()
            return ContadorFolio(*fila)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error al generar folio %s: %s", tipo, e)
            raise FolioError("Error al generar folio", original=e) from e

    def asegurar_folios(self, defaults):
        """Crea los contadores que falten con consecutivo 0."""
        try:
            for tipo, config in defaults.items():
                if db.session.get(Folio, tipo) is None:
                    db.session.add(Folio(tipo=tipo, prefijo=config['prefijo'], ancho=config['ancho'], consecutivo=0))
            db.session.commit()
        except SQLAlchemyError as e:
            self._fallar("Error al inicializar los folios", e)

    # --- Catálogos ---

    def directores(self):
        try:
            filas = db.session.query(Directorio).order_by(Directorio.nombre).all()
        except SQLAlchemyError as e:
            self._fallar("Error al obtener el directorio", e)
        return [DirectorRef(id=d.id_directorio, nombre=d.nombre, puesto=d.puesto) for d in filas]

    def areas(self):
        try:
            filas = db.session.query(Area).order_by(Area.nombre).all()
        except SQLAlchemyError as e:
            self._fallar("Error al obtener las áreas", e)
        return [AreaRef(id=a.id_area, nombre=a.nombre) for a in filas]

    def relaciones_directorio_area(self):
        try:
            filas = db.session.execute(
                select(directorio_areas.c.id_directorio, directorio_areas.c.id_area)
            ).all()
        except SQLAlchemyError as e:
            self._fallar("Error al obtener la relación directorio-áreas", e)
        return [(f[0], f[1]) for f in filas]
