"""Tests for folios.SequentialFolioAllocator and the SQL counter behind it."""
from __future__ import annotations

import threading

import pytest

from conftest import folio_consecutivo
from database import ContadorFolio, DataSourceError, FolioError, FolioNoConfigurado, MuebleDataSource
from folios import SequentialFolioAllocator, TipoFolioInvalido, formatear_folio


class ContadorEnMemoria:
    """Fuente de folios en memoria; el incremento se protege con un candado."""

    def __init__(self, consecutivo=0, fallar=False) -> None:
        self.contador = ContadorFolio('RESGUARDO', 'RES', consecutivo, 4)
        self.fallar = fallar
        self.lock = threading.Lock()
        self.incrementos = 0

    def leer_contador(self, tipo):
        return self.contador if tipo == self.contador.tipo else None

    def atomic_increment(self, tipo):
        if self.fallar:
            raise FolioError('Error al generar folio')
        with self.lock:
            self.incrementos += 1
            self.contador = self.contador._replace(consecutivo=self.contador.consecutivo + 1)
            return self.contador


# ── Formato ──────────────────────────────────────────────────────────


class TestFormatearFolio:
    def test_zero_padded(self) -> None:
        assert formatear_folio('RES', 7) == 'RES-0007'

    def test_wider_than_padding(self) -> None:
        assert formatear_folio('BAJA', 12345, 4) == 'BAJA-12345'


# ── Asignador con fuente en memoria ──────────────────────────────────


class TestAllocator:
    def test_preview_is_stable(self) -> None:
        allocator = SequentialFolioAllocator(ContadorEnMemoria(41))
        assert allocator.preview('RESGUARDO') == 'RES-0042'
        assert allocator.preview('RESGUARDO') == 'RES-0042'

    def test_allocate_matches_preview_then_advances(self) -> None:
        allocator = SequentialFolioAllocator(ContadorEnMemoria(41))
        assert allocator.allocate('RESGUARDO') == 'RES-0042'
        assert allocator.preview('RESGUARDO') == 'RES-0043'

    def test_unknown_type_preview(self) -> None:
        assert SequentialFolioAllocator(ContadorEnMemoria()).preview('BAJA') is None

    def test_type_outside_allowed_list(self) -> None:
        allocator = SequentialFolioAllocator(ContadorEnMemoria(), tipos=('RESGUARDO', 'BAJA'))
        with pytest.raises(TipoFolioInvalido):
            allocator.preview('FACTURA')
        with pytest.raises(TipoFolioInvalido):
            allocator.allocate('')

    def test_failure_propagates_without_local_fallback(self) -> None:
        fuente = ContadorEnMemoria(5, fallar=True)
        with pytest.raises(DataSourceError):
            SequentialFolioAllocator(fuente).allocate('RESGUARDO')
        assert fuente.contador.consecutivo == 5

    def test_concurrent_allocations_are_unique(self) -> None:
        fuente = ContadorEnMemoria()
        allocator = SequentialFolioAllocator(fuente)
        folios = []
        guardar = threading.Lock()

        def trabajar():
            for _ in range(25):
                folio = allocator.allocate('RESGUARDO')
                with guardar:
                    folios.append(folio)

        hilos = [threading.Thread(target=trabajar) for _ in range(8)]
        for hilo in hilos:
            hilo.start()
        for hilo in hilos:
            hilo.join()

        assert len(folios) == 200
        assert len(set(folios)) == 200
        assert fuente.incrementos == 200
        assert sorted(folios) == [formatear_folio('RES', n) for n in range(1, 201)]


# ── Contador en la base de datos ─────────────────────────────────────


class TestContadorSQL:
    def test_counter_seeded(self, app, ctx) -> None:
        assert MuebleDataSource().leer_contador('RESGUARDO') == ContadorFolio('RESGUARDO', 'RES', 0, 4)

    def test_preview_does_not_consume(self, app, ctx) -> None:
        allocator = SequentialFolioAllocator(MuebleDataSource())
        assert allocator.preview('RESGUARDO') == 'RES-0001'
        assert allocator.preview('RESGUARDO') == 'RES-0001'
        assert folio_consecutivo(app) == 0

    def test_allocations_are_strictly_increasing(self, app, ctx) -> None:
        allocator = SequentialFolioAllocator(MuebleDataSource())
        folios = [allocator.allocate('RESGUARDO') for _ in range(3)]
        assert folios == ['RES-0001', 'RES-0002', 'RES-0003']
        assert allocator.allocate('BAJA') == 'BAJA-0001'
        assert folio_consecutivo(app) == 3

    def test_missing_configuration(self, app, ctx) -> None:
        with pytest.raises(FolioNoConfigurado):
            MuebleDataSource().atomic_increment('INEXISTENTE')
