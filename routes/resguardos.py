# routes/resguardos.py
from datetime import date

from flask import Blueprint, request, jsonify, current_app, session
from flask_login import login_required, current_user

import config
from database import DataSourceError, FolioNoConfigurado
from decorators import permission_required
from directorio import areas_de_director, buscar_director, sugerir_director
from folios import SequentialFolioAllocator, TipoFolioInvalido
from log_activity import log_activity
from routes.busqueda import cargar_estado, coleccion, fuente, pagina_visible
from seleccion import SelectionState

resguardos_bp = Blueprint('resguardos', __name__)

SESSION_KEY = 'seleccion'


def cargar_seleccion():
    """Devuelve (selección, cambios) revalidada contra la colección vigente."""
    snapshot = {r.id: r for r in coleccion()}
    return SelectionState.from_dict(session.get(SESSION_KEY), snapshot)


def guardar_seleccion(state):
    _completar_puesto(state)
    session[SESSION_KEY] = state.to_dict()


def _completar_puesto(state):
    """El puesto del formulario sale del catálogo del director derivado de la selección."""
    if not len(state) or state.formulario.get('puesto') or state.formulario.get('director_id') is None:
        return
    director = buscar_director(fuente().directores(), state.formulario['director_id'])
    if director and director.puesto:
        state.formulario['puesto'] = director.puesto


def _registro(id_registro):
    return next((r for r in coleccion() if r.id == id_registro), None)


def _respuesta_seleccion(state, cambios=None):
    pagina, page, _ = pagina_visible(cargar_estado())
    return {
        'registros': [r.to_dict() for r in state.registros],
        'total': len(state),
        'usufinal_conflict': state.usufinal_conflict,
        'area_conflict': state.area_conflict,
        'resguardantes': {str(k): v for k, v in state.resguardantes.items()},
        'formulario': dict(state.formulario),
        'pagina': dict(state.page_selection_state(pagina), page=page),
        'cambios': cambios or {'eliminados': [], 'descartados': []},
    }


def allocator():
    return SequentialFolioAllocator(fuente(), config.FOLIO_TYPES)


# =================================================================
# SELECCIÓN DE ARTÍCULOS
# =================================================================

@resguardos_bp.route('/api/resguardos/seleccion', methods=['GET'])
@login_required
@permission_required('resguardos.crear_resguardo')
def ver_seleccion():
    state, cambios = cargar_seleccion()
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state, cambios))


@resguardos_bp.route('/api/resguardos/seleccion', methods=['POST'])
@login_required
@permission_required('resguardos.crear_resguardo')
def agregar_a_seleccion():
    data = request.get_json(silent=True) or {}
    id_registro = data.get('id')
    es_entero = isinstance(id_registro, int) and not isinstance(id_registro, bool)
    registro = _registro(id_registro) if es_entero else None
    if registro is None:
        return jsonify({'error': f'El mueble {id_registro} no existe.'}), 404

    state, cambios = cargar_seleccion()
    resultado = state.toggle(registro) if data.get('toggle') else state.try_add(registro)
    guardar_seleccion(state)
    if not resultado.ok:
        return jsonify({'error': resultado.conflicto.mensaje, 'conflicto': resultado.conflicto.to_dict()}), 409
    return jsonify(_respuesta_seleccion(state, cambios))


@resguardos_bp.route('/api/resguardos/seleccion/<int:id_registro>', methods=['DELETE'])
@login_required
@permission_required('resguardos.crear_resguardo')
def quitar_de_seleccion(id_registro):
    state, cambios = cargar_seleccion()
    if not state.remove(id_registro):
        guardar_seleccion(state)
        return jsonify({'error': f'El mueble {id_registro} no está en la selección.'}), 404
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state, cambios))


@resguardos_bp.route('/api/resguardos/seleccion', methods=['DELETE'])
@login_required
@permission_required('resguardos.crear_resguardo')
def limpiar_seleccion():
    state = SelectionState()
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state))


@resguardos_bp.route('/api/resguardos/seleccion/pagina', methods=['POST'])
@login_required
@permission_required('resguardos.crear_resguardo')
def seleccionar_pagina():
    """Selecciona (o deselecciona) todos los artículos de la página visible."""
    data = request.get_json(silent=True) or {}
    accion = data.get('accion', 'seleccionar')
    if accion not in ('seleccionar', 'deseleccionar'):
        return jsonify({'error': "La acción debe ser 'seleccionar' o 'deseleccionar'."}), 400

    state, cambios = cargar_seleccion()
    pagina, _, _ = pagina_visible(cargar_estado())
    if accion == 'deseleccionar':
        state.deselect_page(pagina)
    else:
        resultado = state.select_all_visible(pagina)
        if not resultado.ok:
            guardar_seleccion(state)
            return jsonify({'error': resultado.conflicto.mensaje, 'conflicto': resultado.conflicto.to_dict()}), 409
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state, cambios))


@resguardos_bp.route('/api/resguardos/seleccion/conflictos', methods=['DELETE'])
@login_required
@permission_required('resguardos.crear_resguardo')
def descartar_conflictos():
    state, cambios = cargar_seleccion()
    state.clear_conflicts()
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state, cambios))


@resguardos_bp.route('/api/resguardos/seleccion/<int:id_registro>/resguardante', methods=['PUT'])
@login_required
@permission_required('resguardos.crear_resguardo')
def asignar_resguardante(id_registro):
    data = request.get_json(silent=True) or {}
    state, cambios = cargar_seleccion()
    if not state.asignar_resguardante(id_registro, data.get('resguardante')):
        guardar_seleccion(state)
        return jsonify({'error': f'El mueble {id_registro} no está en la selección.'}), 404
    guardar_seleccion(state)
    return jsonify(_respuesta_seleccion(state, cambios))


# =================================================================
# FOLIOS
# =================================================================

@resguardos_bp.route('/api/folios/preview', methods=['GET'])
@login_required
@permission_required('folios.generar_folio')
def preview_folio():
    tipo = request.args.get('tipo', 'RESGUARDO')
    try:
        folio = allocator().preview(tipo)
    except TipoFolioInvalido as e:
        return jsonify({'error': str(e)}), 400
    if folio is None:
        return jsonify({'error': f'No se encontró configuración para tipo: {tipo}'}), 404
    return jsonify({'folio': folio, 'tipo': tipo})


@resguardos_bp.route('/api/folios/generar', methods=['POST'])
@login_required
@permission_required('folios.generar_folio')
def generar_folio():
    data = request.get_json(silent=True) or {}
    tipo = data.get('tipo', 'RESGUARDO')
    try:
        folio = allocator().allocate(tipo)
    except TipoFolioInvalido as e:
        return jsonify({'error': str(e)}), 400
    except FolioNoConfigurado as e:
        return jsonify({'error': e.message}), 404
    except DataSourceError as e:
        current_app.logger.error(f"Error al generar folio {tipo}: {e.message}", exc_info=True)
        return jsonify({'error': e.message}), 503

    log_activity(action='Generación de folio', category='Folios', resource_id=folio,
                 details=f"Usuario '{current_user.username}' generó el folio {folio}")
    return jsonify({'folio': folio, 'tipo': tipo}), 201


# =================================================================
# CATÁLOGOS: DIRECTORIO Y ÁREAS
# =================================================================

@resguardos_bp.route('/api/directorio', methods=['GET'])
@login_required
@permission_required('resguardos.crear_resguardo')
def listar_directorio():
    return jsonify([d.to_dict() for d in fuente().directores()])


@resguardos_bp.route('/api/areas', methods=['GET'])
@login_required
@permission_required('resguardos.crear_resguardo')
def listar_areas():
    return jsonify([{'id': a.id, 'nombre': a.nombre} for a in fuente().areas()])


@resguardos_bp.route('/api/directorio/<int:id_directorio>/areas', methods=['GET'])
@login_required
@permission_required('resguardos.crear_resguardo')
def areas_del_director(id_directorio):
    datos = fuente()
    if buscar_director(datos.directores(), id_directorio) is None:
        return jsonify({'error': f'El director {id_directorio} no existe.'}), 404
    areas = areas_de_director(id_directorio, datos.relaciones_directorio_area(), datos.areas())
    return jsonify([{'id': a.id, 'nombre': a.nombre} for a in areas])


@resguardos_bp.route('/api/directorio/sugerencia', methods=['GET'])
@login_required
@permission_required('resguardos.crear_resguardo')
def sugerencia_director():
    director = sugerir_director(fuente().directores(), request.args.get('nombre', ''))
    return jsonify({'director': director.to_dict() if director else None})


# =================================================================
# CREACIÓN DEL RESGUARDO
# =================================================================

@resguardos_bp.route('/api/resguardos', methods=['POST'])
@login_required
@permission_required('resguardos.crear_resguardo')
def crear_resguardo():
    data = request.get_json(silent=True) or {}
    state, cambios = cargar_seleccion()

    # --- 1. Validación ---
    if not len(state):
        guardar_seleccion(state)
        return jsonify({'error': 'No hay artículos seleccionados.', 'cambios': cambios}), 400

    datos = fuente()
    director = buscar_director(datos.directores(), data.get('director_id') or state.formulario.get('director_id'))
    area = (data.get('area') or state.formulario.get('area') or '').strip()
    puesto = (data.get('puesto') or (director.puesto if director else '') or state.formulario.get('puesto') or '').strip()
    resguardante = (data.get('resguardante') or '').strip()
    faltantes = [nombre for nombre, valor in (('director', director), ('area', area), ('puesto', puesto)) if not valor]
    if faltantes:
        guardar_seleccion(state)
        return jsonify({'error': f"Faltan datos del resguardo: {', '.join(faltantes)}."}), 400

    # --- 2. La selección debe seguir vigente ---
    if cambios['eliminados'] or cambios['descartados']:
        guardar_seleccion(state)
        return jsonify({
            'error': 'La selección cambió: algunos artículos ya no existen o ya no coinciden en director o área.',
            'cambios': cambios,
        }), 409

    # --- 3. Folio ---
    try:
        folio = allocator().allocate('RESGUARDO')
    except DataSourceError as e:
        current_app.logger.error(f"No se pudo reservar el folio del resguardo: {e.message}", exc_info=True)
        return jsonify({'error': e.message}), 503

    # --- 4. Actualización de muebles y renglones del resguardo ---
    fecha = date.today()
    articulos = []
    try:
        for registro in state.registros:
            custodio = state.resguardantes.get(registro.id) or resguardante
            datos.update(registro.id, {
                'id_directorio': director.id,
                'area': area,
                'resguardante': custodio or None,
            }, commit=False)
            datos.insertar_resguardo(
                folio=folio,
                f_resguardo=fecha,
                id_mueble=registro.id,
                num_inventario=registro.id_inv,
                descripcion=registro.descripcion,
                rubro=registro.rubro,
                condicion=registro.estado,
                area_resguardo=area,
                dir_area=director.nombre,
                usufinal=custodio or None,
                puesto=puesto,
                origen=registro.origen,
                created_by=current_user.id,
            )
            articulos.append({
                'id': registro.id,
                'id_inv': registro.id_inv,
                'descripcion': registro.descripcion,
                'rubro': registro.rubro,
                'estado': registro.estado,
                'resguardante': custodio or None,
            })
        # --- 5. Confirmar ---
        datos.confirmar()
    except DataSourceError as e:
        datos.revertir()
        current_app.logger.error(f"Error al guardar el resguardo {folio}: {e.message}", exc_info=True)
        return jsonify({'error': e.message, 'folio': folio}), 503

    log_activity(
        action='Creación de Resguardo',
        category='Resguardos',
        resource_id=folio,
        details=f"Usuario '{current_user.username}' creó el resguardo {folio} con {len(articulos)} artículo(s)"
    )
    guardar_seleccion(SelectionState())

    return jsonify({
        'message': 'Resguardo creado exitosamente.',
        'folio': folio,
        'pdf': {
            'folio': folio,
            'fecha': fecha.isoformat(),
            'director': director.nombre,
            'area': area,
            'puesto': puesto,
            'resguardante': resguardante or None,
            'articulos': articulos,
        },
    }), 201
