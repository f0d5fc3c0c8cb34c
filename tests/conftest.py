"""Fixtures compartidas: aplicación con SQLite en memoria y un inventario pequeño."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

import config
from app import create_app
from database import MuebleDataSource
from extensions import db
from models import Area, Directorio, Folio, Mueble, Permission, Role, User
from registros import AreaRef, Registro


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'pruebas',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SEARCH_SETTLE_SECONDS': 0,
        'ROWS_PER_PAGE': 10,
    })
    with app.app_context():
        db.create_all()
        _sembrar()
        MuebleDataSource().asegurar_folios(config.FOLIO_DEFAULTS)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Contexto de aplicación para pruebas que usan la base sin pasar por HTTP."""
    with app.app_context():
        yield


def _sembrar():
    sistemas = Area(nombre='DIRECCION DE SISTEMAS')
    rh = Area(nombre='RECURSOS HUMANOS')
    tesoreria = Area(nombre='TESORERIA')
    juan = Directorio(nombre='Juan Pérez López', puesto='Director de Sistemas', areas=[sistemas])
    ana = Directorio(nombre='Ana María Gómez', puesto='Directora de Recursos Humanos', areas=[rh, tesoreria])
    db.session.add_all([sistemas, rh, tesoreria, juan, ana])
    db.session.flush()

    db.session.add_all([
        Mueble(id_inv='MUE-0001', descripcion='Proyector Epson X200', rubro='EQUIPO DE COMPUTO',
               estado='BUENO', estatus='ACTIVO', valor=Decimal('8500.00'), f_adq=date(2021, 3, 15),
               resguardante='Carlos Ruiz', origen='INEA', area=sistemas, directorio=juan),
        Mueble(id_inv='MUE-0002', descripcion='Escritorio metálico', rubro='MOBILIARIO',
               estado='REGULAR', estatus='ACTIVO', valor=Decimal('3200.00'), f_adq=date(2019, 8, 1),
               origen='INEA', area=sistemas, directorio=juan),
        Mueble(id_inv='MUE-0003', descripcion='Silla ejecutiva', rubro='MOBILIARIO',
               estado='BUENO', estatus='ACTIVO', origen='ITEA', area=rh, directorio=ana),
        Mueble(id_inv='MUE-0004', descripcion='Laptop Dell Latitude', rubro='EQUIPO DE COMPUTO',
               estado='BUENO', estatus='ACTIVO', valor=Decimal('18900.50'), resguardante='Carlos Ruiz',
               origen='INEA', area=sistemas, directorio=juan),
        Mueble(id_inv='MUE-0005', descripcion='Archivero de cuatro gavetas', rubro='MOBILIARIO',
               estado='MALO', estatus='INACTIVO', origen='ITEA', area=tesoreria, directorio=ana),
    ])
    db.session.commit()


def _crear_usuario(app, username, rol):
    with app.app_context():
        user = User(username=username, roles=[rol])
        user.set_password('secreto')
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def usuario(app):
    return _crear_usuario(app, 'capturista', Role(name='admin', description='Administrador'))


@pytest.fixture
def usuario_limitado(app):
    permiso = Permission(endpoint='busqueda.consultar_muebles', description='Consultar')
    return _crear_usuario(app, 'consulta', Role(name='consulta', permissions=[permiso]))


def _iniciar_sesion(app, user_id):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user_id)
        sess['_fresh'] = True
    return client


@pytest.fixture
def client(app, usuario):
    return _iniciar_sesion(app, usuario)


@pytest.fixture
def client_limitado(app, usuario_limitado):
    return _iniciar_sesion(app, usuario_limitado)


@pytest.fixture
def anonimo(app):
    return app.test_client()


def mueble_id(app, id_inv):
    with app.app_context():
        return db.session.query(Mueble.id).filter_by(id_inv=id_inv).scalar()


def folio_consecutivo(app, tipo='RESGUARDO'):
    with app.app_context():
        return db.session.get(Folio, tipo).consecutivo


# ── Registros en memoria para pruebas sin base de datos ──────────────


def hacer_registro(id, id_inv=None, area=None, usufinal=None, **campos) -> Registro:
    return Registro(
        id=id,
        id_inv=id_inv or f'INV-{id:04d}',
        area=AreaRef(id=None, nombre=area) if area else None,
        usufinal=usufinal,
        **campos,
    )


@pytest.fixture
def registros():
    return [
        hacer_registro(1, 'MUE-0001', area='DIRECCION DE SISTEMAS', usufinal='Juan Pérez López',
                       descripcion='Proyector Epson X200', rubro='EQUIPO DE COMPUTO', estado='BUENO',
                       estatus='ACTIVO', resguardante='Carlos Ruiz', origen='INEA'),
        hacer_registro(2, 'MUE-0002', area='DIRECCION DE SISTEMAS', usufinal='Juan Pérez López',
                       descripcion='Escritorio metálico', rubro='MOBILIARIO', estado='REGULAR',
                       estatus='ACTIVO', origen='INEA'),
        hacer_registro(3, 'MUE-0003', area='RECURSOS HUMANOS', usufinal='Ana María Gómez',
                       descripcion='Silla ejecutiva', rubro='MOBILIARIO', estado='BUENO',
                       estatus='ACTIVO', origen='ITEA'),
        hacer_registro(4, 'MUE-0004', area='DIRECCION DE SISTEMAS', usufinal='Juan Pérez López',
                       descripcion='Laptop Dell Latitude', rubro='EQUIPO DE COMPUTO', estado='BUENO',
                       estatus='ACTIVO', resguardante='Carlos Ruiz', origen='INEA'),
        hacer_registro(5, 'MUE-0005', area='TESORERIA', usufinal='Ana María Gómez',
                       descripcion='Archivero de cuatro gavetas', rubro='MOBILIARIO', estado='MALO',
                       estatus='INACTIVO', origen='ITEA'),
    ]
