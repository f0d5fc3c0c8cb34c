# config.py
import os

# --- Configuración de la Base de Datos ---
DB_CONFIG = {
    'host': os.environ.get('INVENTARIO_DB_HOST', 'localhost'),
    'user': os.environ.get('INVENTARIO_DB_USER', 'root'),
    'password': os.environ.get('INVENTARIO_DB_PASSWORD', ''),
    'database': os.environ.get('INVENTARIO_DB_NAME', 'inventario')
}


def database_uri():
    """
    Devuelve la URI de SQLAlchemy. DATABASE_URL tiene prioridad sobre DB_CONFIG.
    """
    url = os.environ.get('DATABASE_URL')
    if url:
        return url
    return f"mysql+pymysql://{DB_CONFIG['user']}:{DB_CONFIG['password']}@{DB_CONFIG['host']}/{DB_CONFIG['database']}"


SECRET_KEY = os.environ.get('INVENTARIO_SECRET_KEY', 'tu_clave_secreta_aqui')

# --- Búsqueda omnibox ---
SUGGESTION_SCAN_LIMIT = 10   # máximo de sugerencias recolectadas antes de ordenar
SUGGESTION_LIMIT = 7         # máximo de sugerencias que se muestran
SUGGESTION_MIN_CHARS = 2
SEARCH_SETTLE_SECONDS = 0.3
ROWS_PER_PAGE = 10

# Campos por los que se puede ordenar la tabla de muebles
SORTABLE_FIELDS = [
    'id_inv', 'descripcion', 'rubro', 'estado', 'estatus',
    'area', 'usufinal', 'resguardante', 'valor', 'f_adq', 'origen'
]
DEFAULT_SORT = ('id_inv', 'asc')

# --- Folios ---
FOLIO_TYPES = ('RESGUARDO', 'BAJA')

FOLIO_DEFAULTS = {
    'RESGUARDO': {'prefijo': 'RES', 'ancho': 4},
    'BAJA': {'prefijo': 'BAJA', 'ancho': 4},
}

# --- Permisos usados por los blueprints ---
PERMISSIONS = [
    ('busqueda.consultar_muebles', 'Consultar y filtrar el inventario'),
    ('resguardos.crear_resguardo', 'Crear resguardos'),
    ('folios.generar_folio', 'Generar folios'),
]
