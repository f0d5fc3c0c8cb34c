from extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sqlalchemy import text



# --- TABLAS DE UNIÓN (Many-to-Many Relationships) ---
user_roles = db.Table('user_roles',
    db.Column('user_id', db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
    db.Column('role_id', db.Integer, db.ForeignKey('role.id', ondelete='CASCADE'), primary_key=True)
)

role_permissions = db.Table('role_permissions',
    db.Column('role_id', db.Integer, db.ForeignKey('role.id', ondelete='CASCADE'), primary_key=True),
    db.Column('permission_id', db.Integer, db.ForeignKey('permission.id', ondelete='CASCADE'), primary_key=True)
)

# Un director puede estar a cargo de varias áreas y un área puede tener varios directores
directorio_areas = db.Table('directorio_areas',
    db.Column('id_directorio', db.Integer, db.ForeignKey('directorio.id_directorio', ondelete='CASCADE'), primary_key=True),
    db.Column('id_area', db.Integer, db.ForeignKey('area.id_area', ondelete='CASCADE'), primary_key=True)
)


# --- USUARIOS Y PERMISOS ---

class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    roles = db.relationship('Role', secondary=user_roles, backref='users')
    activity_logs = db.relationship('ActivityLog', back_populates='user', lazy=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def is_admin(self):
        return any(role.name == 'admin' for role in self.roles)

    def permisos(self):
        return {permission.endpoint for role in self.roles for permission in role.permissions}

class Role(db.Model):
    __tablename__ = 'role'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    description = db.Column(db.String(255))

    permissions = db.relationship('Permission', secondary=role_permissions, backref='roles')

class Permission(db.Model):
    __tablename__ = 'permission'
    id = db.Column(db.Integer, primary_key=True)
    endpoint = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.String(255))

class ActivityLog(db.Model):
    __tablename__ = 'activity_log'
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    action = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100))
    details = db.Column(db.Text)
    resource_id = db.Column(db.String(50))
    user = db.relationship('User', back_populates='activity_logs')


# --- CATÁLOGOS ---

class Area(db.Model):
    __tablename__ = 'area'
    id_area = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(255), nullable=False, unique=True)

    muebles = db.relationship('Mueble', back_populates='area', lazy=True)


class Directorio(db.Model):
    __tablename__ = 'directorio'
    id_directorio = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(255), nullable=False)
    puesto = db.Column(db.String(255))

    areas = db.relationship('Area', secondary=directorio_areas, backref='directores')
    muebles = db.relationship('Mueble', back_populates='directorio', lazy=True)


# --- INVENTARIO ---

class Mueble(db.Model):
    __tablename__ = 'muebles'
    id = db.Column(db.Integer, primary_key=True)
    id_inv = db.Column(db.String(50), unique=True, nullable=False, index=True)
    rubro = db.Column(db.String(100))
    descripcion = db.Column(db.Text)
    valor = db.Column(db.Numeric(12, 2))
    f_adq = db.Column(db.Date)
    adquisicion = db.Column(db.String(100))
    proveedor = db.Column(db.String(255))
    factura = db.Column(db.String(100))
    ubicacion_es = db.Column(db.String(100))
    ubicacion_mu = db.Column(db.String(100))
    ubicacion_no = db.Column(db.String(100))
    estado = db.Column(db.String(50))
    estatus = db.Column(db.String(50), index=True)
    resguardante = db.Column(db.String(255))
    fechabaja = db.Column(db.Date)
    causadebaja = db.Column(db.String(255))
    image_path = db.Column(db.String(255))
    origen = db.Column(db.String(50))

    id_area = db.Column(db.Integer, db.ForeignKey('area.id_area', ondelete='SET NULL'), nullable=True)
    id_directorio = db.Column(db.Integer, db.ForeignKey('directorio.id_directorio', ondelete='SET NULL'), nullable=True)

    Fecha_Registro = db.Column(db.DateTime, server_default=text('CURRENT_TIMESTAMP'))

    area = db.relationship('Area', back_populates='muebles')
    directorio = db.relationship('Directorio', back_populates='muebles')
    resguardos = db.relationship('Resguardo', back_populates='mueble', lazy=True)


class Resguardo(db.Model):
    """Un renglón por artículo de cada documento de resguardo; el folio agrupa los renglones."""
    __tablename__ = 'resguardos'
    id = db.Column(db.Integer, primary_key=True)
    folio = db.Column(db.String(50), nullable=False, index=True)
    f_resguardo = db.Column(db.Date, nullable=False)
    id_mueble = db.Column(db.Integer, db.ForeignKey('muebles.id', ondelete='RESTRICT'), nullable=False)
    num_inventario = db.Column(db.String(50))
    descripcion = db.Column(db.Text)
    rubro = db.Column(db.String(100))
    condicion = db.Column(db.String(50))
    area_resguardo = db.Column(db.String(255))
    dir_area = db.Column(db.String(255))
    usufinal = db.Column(db.String(255))
    puesto = db.Column(db.String(255))
    origen = db.Column(db.String(50))
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    Fecha_Registro = db.Column(db.DateTime, default=datetime.utcnow)

    mueble = db.relationship('Mueble', back_populates='resguardos')


class Folio(db.Model):
    """Contador consecutivo por tipo de documento."""
    __tablename__ = 'folios'
    tipo = db.Column(db.String(30), primary_key=True)
    prefijo = db.Column(db.String(20), nullable=False)
    consecutivo = db.Column(db.Integer, nullable=False, default=0)
    ancho = db.Column(db.Integer, nullable=False, default=4)
