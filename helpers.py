# helpers.py
import time
import unicodedata


def map_operator(operator):
    """
    Convierte operadores del formulario a los operadores que entiende la
    fuente de datos ('eq' o 'ilike').
    """
    operator_map = {
        '==': 'eq',
        '=': 'eq',
        'eq': 'eq',
        'contains': 'ilike',
        'like': 'ilike',
        'ilike': 'ilike',
    }
    return operator_map.get(operator, 'eq')


def limpiar(texto):
    """Minúsculas, sin acentos y sin espacios en los extremos."""
    texto = unicodedata.normalize('NFD', (texto or '').lower())
    return ''.join(c for c in texto if unicodedata.category(c) != 'Mn').strip()


def clave_texto(texto):
    """
    Llave de ordenamiento para texto en español: primero sin acentos ni
    mayúsculas, luego el texto original para desempatar de forma estable.
    """
    return (limpiar(texto), texto)


class SettledValue:
    """
    Política de asentamiento (debounce) entre las teclas y el motor de búsqueda.

    ``push`` registra el valor crudo; ``current`` devuelve el último valor una vez
    que pasaron ``delay`` segundos sin cambios y, mientras tanto, el último valor
    ya asentado.
    """

    def __init__(self, delay, clock=time.monotonic, initial=''):
        self.delay = delay
        self.clock = clock
        self._pendiente = initial
        self._asentado = initial
        self._marca = None

    def push(self, value):
        self._pendiente = value
        self._marca = self.clock()
        if self.delay <= 0:
            self._asentado = value

    def current(self):
        if self._marca is not None and self.clock() - self._marca >= self.delay:
            self._asentado = self._pendiente
        return self._asentado

    @property
    def raw(self):
        return self._pendiente

    def to_dict(self):
        return {'pendiente': self._pendiente, 'asentado': self._asentado, 'marca': self._marca}

    def restore(self, data):
        self._pendiente = data.get('pendiente', '')
        self._asentado = data.get('asentado', '')
        self._marca = data.get('marca')

    def reset(self, value=''):
        """Fija el valor de inmediato, sin esperar a que se asiente."""
        self._pendiente = value
        self._asentado = value
        self._marca = None
