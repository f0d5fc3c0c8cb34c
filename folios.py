# folios.py
"""
Folios consecutivos de documentos (RESGUARDO, BAJA, ...).

``preview`` sólo lee el contador y formatea el siguiente número; ``allocate``
llama una sola vez al incremento atómico de la fuente de datos y formatea lo que
ésta devuelve. Nunca se fabrica un folio localmente si el incremento falla.
"""
import logging

from database import DataSourceError

logger = logging.getLogger(__name__)


class TipoFolioInvalido(ValueError):
    pass


def formatear_folio(prefijo, numero, ancho=4):
    return f"{prefijo}-{int(numero):0{int(ancho)}d}"


class SequentialFolioAllocator:
    def __init__(self, fuente, tipos=None):
        """
        ``fuente`` debe exponer ``leer_contador(tipo)`` -> Folio | None y
        ``atomic_increment(tipo)`` -> Folio con el consecutivo ya incrementado.
        """
        self.fuente = fuente
        self.tipos = tuple(tipos) if tipos else None

    def _validar_tipo(self, tipo):
        if not tipo or (self.tipos is not None and tipo not in self.tipos):
            raise TipoFolioInvalido(f"Tipo de folio inválido: {tipo}")

    def preview(self, tipo):
        """Siguiente folio sin tocar el contador. None si el tipo no está configurado."""
        self._validar_tipo(tipo)
        contador = self.fuente.leer_contador(tipo)
        if contador is None:
            return None
        return formatear_folio(contador.prefijo, contador.consecutivo + 1, contador.ancho)

    def allocate(self, tipo):
        self._validar_tipo(tipo)
        try:
            contador = self.fuente.atomic_increment(tipo)
        except DataSourceError:
            logger.error("No se pudo reservar un folio de tipo %s", tipo, exc_info=True)
            raise
        folio = formatear_folio(contador.prefijo, contador.consecutivo, contador.ancho)
        logger.info("Folio reservado: %s", folio)
        return folio
