# registros.py
"""
Representación única de un mueble del inventario para la lógica de búsqueda y
selección.

La base de datos (y las vistas unificadas) entregan el área y el director en
dos formas: como texto plano o como objeto unido ``{id, nombre}``. Todo se
traduce aquí, en la frontera, a ``AreaRef`` y a un nombre de director, para que
el resto del código trabaje con una sola forma.
"""
from dataclasses import dataclass, asdict, replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class AreaRef:
    id: Optional[int]
    nombre: str


@dataclass(frozen=True)
class Registro:
    id: int
    id_inv: str
    rubro: Optional[str] = None
    descripcion: Optional[str] = None
    valor: Optional[Union[Decimal, float]] = None
    f_adq: Optional[date] = None
    adquisicion: Optional[str] = None
    proveedor: Optional[str] = None
    factura: Optional[str] = None
    ubicacion_es: Optional[str] = None
    ubicacion_mu: Optional[str] = None
    ubicacion_no: Optional[str] = None
    estado: Optional[str] = None
    estatus: Optional[str] = None
    area: Optional[AreaRef] = None
    usufinal: Optional[str] = None
    id_directorio: Optional[int] = None
    resguardante: Optional[str] = None
    fechabaja: Optional[date] = None
    causadebaja: Optional[str] = None
    image_path: Optional[str] = None
    origen: Optional[str] = None

    def valor_de(self, campo: str) -> Any:
        """Valor crudo del campo lógico ``campo`` ('id', 'area', 'usufinal', ...)."""
        if campo == 'id':
            return self.id_inv
        if campo == 'area':
            return self.area.nombre if self.area else None
        return getattr(self, campo, None)

    def texto_de(self, campo: str) -> Optional[str]:
        """Igual que ``valor_de`` pero como texto; vacío se considera ausente."""
        valor = self.valor_de(campo)
        if valor is None:
            return None
        texto = str(valor)
        return texto if texto else None

    def con_cambios(self, **cambios) -> 'Registro':
        return replace(self, **cambios)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['area'] = {'id': self.area.id, 'nombre': self.area.nombre} if self.area else None
        for campo in ('f_adq', 'fechabaja'):
            if data[campo] is not None:
                data[campo] = data[campo].isoformat()
        if data['valor'] is not None:
            data['valor'] = float(data['valor'])
        return data


# --- Normalización en la frontera ---

def _nombre_y_id(value) -> Tuple[Optional[str], Optional[int]]:
    if value is None:
        return None, None
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict):
        ident = value.get('id', value.get('id_area', value.get('id_directorio')))
        return value.get('nombre'), ident
    # Objeto ORM (Area / Directorio) u objeto similar
    ident = getattr(value, 'id', None)
    if ident is None:
        ident = getattr(value, 'id_area', None) or getattr(value, 'id_directorio', None)
    return getattr(value, 'nombre', None), ident


def normalizar_area(value) -> Optional[AreaRef]:
    """Acepta texto, ``{id, nombre}`` u objeto con ``nombre``; sin nombre devuelve None."""
    nombre, ident = _nombre_y_id(value)
    if nombre is None or not str(nombre).strip():
        return None
    return AreaRef(id=ident, nombre=str(nombre).strip())


def normalizar_director(value) -> Tuple[Optional[str], Optional[int]]:
    nombre, ident = _nombre_y_id(value)
    if nombre is None or not str(nombre).strip():
        return None, ident
    return str(nombre).strip(), ident


def registro_desde_mueble(mueble) -> Registro:
    """Traduce un ``models.Mueble`` a ``Registro``."""
    usufinal, id_directorio = normalizar_director(mueble.directorio)
    area = normalizar_area(mueble.area)
    return Registro(
        id=mueble.id,
        id_inv=mueble.id_inv,
        rubro=mueble.rubro,
        descripcion=mueble.descripcion,
        valor=mueble.valor,
        f_adq=mueble.f_adq,
        adquisicion=mueble.adquisicion,
        proveedor=mueble.proveedor,
        factura=mueble.factura,
        ubicacion_es=mueble.ubicacion_es,
        ubicacion_mu=mueble.ubicacion_mu,
        ubicacion_no=mueble.ubicacion_no,
        estado=mueble.estado,
        estatus=mueble.estatus,
        area=area,
        usufinal=usufinal,
        id_directorio=id_directorio if id_directorio is not None else mueble.id_directorio,
        resguardante=mueble.resguardante,
        fechabaja=mueble.fechabaja,
        causadebaja=mueble.causadebaja,
        image_path=mueble.image_path,
        origen=mueble.origen,
    )


def registro_desde_dict(data: Dict[str, Any]) -> Registro:
    """
    Traduce un diccionario con cualquiera de las dos formas de área/director
    (texto plano o ``{id, nombre}``) a ``Registro``. Las llaves desconocidas se ignoran.
    """
    campos = {k: v for k, v in data.items() if k in Registro.__dataclass_fields__}
    campos['area'] = normalizar_area(data.get('area'))
    usufinal, id_directorio = normalizar_director(data.get('directorio', data.get('usufinal')))
    campos['usufinal'] = usufinal
    if campos.get('id_directorio') is None:
        campos['id_directorio'] = id_directorio
    campos.pop('directorio', None)
    return Registro(**campos)
