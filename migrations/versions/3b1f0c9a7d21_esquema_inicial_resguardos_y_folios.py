"""Esquema inicial: catálogos, muebles, resguardos y contadores de folios

Revision ID: 3b1f0c9a7d21
Revises:
Create Date: 2025-11-04 10:12:31.508214

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3b1f0c9a7d21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # --- Usuarios y permisos ---
    op.create_table('user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username')
    )
    op.create_table('role',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_table('permission',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('endpoint', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('endpoint')
    )
    op.create_table('user_roles',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'role_id')
    )
    op.create_table('role_permissions',
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('permission_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['permission_id'], ['permission.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('role_id', 'permission_id')
    )
    op.create_table('activity_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('resource_id', sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )

    # --- Catálogos ---
    op.create_table('area',
        sa.Column('id_area', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id_area'),
        sa.UniqueConstraint('nombre')
    )
    op.create_table('directorio',
        sa.Column('id_directorio', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=255), nullable=False),
        sa.Column('puesto', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id_directorio')
    )
    op.create_table('directorio_areas',
        sa.Column('id_directorio', sa.Integer(), nullable=False),
        sa.Column('id_area', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['id_area'], ['area.id_area'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['id_directorio'], ['directorio.id_directorio'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id_directorio', 'id_area')
    )

    # --- Inventario ---
    op.create_table('muebles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('id_inv', sa.String(length=50), nullable=False),
        sa.Column('rubro', sa.String(length=100), nullable=True),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('valor', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('f_adq', sa.Date(), nullable=True),
        sa.Column('adquisicion', sa.String(length=100), nullable=True),
        sa.Column('proveedor', sa.String(length=255), nullable=True),
        sa.Column('factura', sa.String(length=100), nullable=True),
        sa.Column('ubicacion_es', sa.String(length=100), nullable=True),
        sa.Column('ubicacion_mu', sa.String(length=100), nullable=True),
        sa.Column('ubicacion_no', sa.String(length=100), nullable=True),
        sa.Column('estado', sa.String(length=50), nullable=True),
        sa.Column('estatus', sa.String(length=50), nullable=True),
        sa.Column('resguardante', sa.String(length=255), nullable=True),
        sa.Column('fechabaja', sa.Date(), nullable=True),
        sa.Column('causadebaja', sa.String(length=255), nullable=True),
        sa.Column('image_path', sa.String(length=255), nullable=True),
        sa.Column('origen', sa.String(length=50), nullable=True),
        sa.Column('id_area', sa.Integer(), nullable=True),
        sa.Column('id_directorio', sa.Integer(), nullable=True),
        sa.Column('Fecha_Registro', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['id_area'], ['area.id_area'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['id_directorio'], ['directorio.id_directorio'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('muebles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_muebles_id_inv'), ['id_inv'], unique=True)
        batch_op.create_index(batch_op.f('ix_muebles_estatus'), ['estatus'], unique=False)

    op.create_table('resguardos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('folio', sa.String(length=50), nullable=False),
        sa.Column('f_resguardo', sa.Date(), nullable=False),
        sa.Column('id_mueble', sa.Integer(), nullable=False),
        sa.Column('num_inventario', sa.String(length=50), nullable=True),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('rubro', sa.String(length=100), nullable=True),
        sa.Column('condicion', sa.String(length=50), nullable=True),
        sa.Column('area_resguardo', sa.String(length=255), nullable=True),
        sa.Column('dir_area', sa.String(length=255), nullable=True),
        sa.Column('usufinal', sa.String(length=255), nullable=True),
        sa.Column('puesto', sa.String(length=255), nullable=True),
        sa.Column('origen', sa.String(length=50), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('Fecha_Registro', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ),
        sa.ForeignKeyConstraint(['id_mueble'], ['muebles.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('resguardos', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_resguardos_folio'), ['folio'], unique=False)

    # --- Folios ---
    op.create_table('folios',
        sa.Column('tipo', sa.String(length=30), nullable=False),
        sa.Column('prefijo', sa.String(length=20), nullable=False),
        sa.Column('consecutivo', sa.Integer(), nullable=False),
        sa.Column('ancho', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('tipo')
    )
    op.bulk_insert(
        sa.table('folios',
                 sa.column('tipo', sa.String), sa.column('prefijo', sa.String),
                 sa.column('consecutivo', sa.Integer), sa.column('ancho', sa.Integer)),
        [
            {'tipo': 'RESGUARDO', 'prefijo': 'RES', 'consecutivo': 0, 'ancho': 4},
            {'tipo': 'BAJA', 'prefijo': 'BAJA', 'consecutivo': 0, 'ancho': 4},
        ]
    )


def downgrade():
    op.drop_table('folios')
    with op.batch_alter_table('resguardos', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_resguardos_folio'))
    op.drop_table('resguardos')
    with op.batch_alter_table('muebles', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_muebles_estatus'))
        batch_op.drop_index(batch_op.f('ix_muebles_id_inv'))
    op.drop_table('muebles')
    op.drop_table('directorio_areas')
    op.drop_table('directorio')
    op.drop_table('area')
    op.drop_table('activity_log')
    op.drop_table('role_permissions')
    op.drop_table('permission')
    op.drop_table('user_roles')
    op.drop_table('role')
    op.drop_table('user')
