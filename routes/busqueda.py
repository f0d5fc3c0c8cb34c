# routes/busqueda.py
from flask import Blueprint, request, jsonify, current_app, session, g
from flask_login import login_required

from busqueda import (CAMPOS_BASE, CAMPOS_UNIFICADOS, FieldIndex, FieldType, MatchClassifier,
                      Suggestion, SuggestionEngine)
from database import MuebleDataSource
from decorators import permission_required
from filtros import RecordFilterer, SearchState, paginar

busqueda_bp = Blueprint('busqueda', __name__)

SESSION_KEY = 'busqueda'


# =================================================================
# ESTADO DE LA SESIÓN Y COLECCIÓN VIGENTE
# =================================================================

def fuente():
    if 'fuente_datos' not in g:
        g.fuente_datos = MuebleDataSource()
    return g.fuente_datos


def coleccion():
    """Colección completa de muebles, cargada una sola vez por petición."""
    if 'coleccion' not in g:
        g.coleccion = fuente().cargar_todos()
    return g.coleccion


def indice(campos):
    g.field_index = FieldIndex.para(coleccion(), g.get('field_index'), campos)
    return g.field_index


def cargar_estado():
    return SearchState.from_dict(
        session.get(SESSION_KEY),
        settle_seconds=current_app.config.get('SEARCH_SETTLE_SECONDS', 0)
    )


def guardar_estado(state):
    session[SESSION_KEY] = state.to_dict()


def visibles(state):
    """Muebles que pasan los filtros activos y el término asentado, ya ordenados."""
    return RecordFilterer(state.campos).apply(coleccion(), state.filtros, state.deferred_term(), state.orden)


def pagina_visible(state):
    rows = current_app.config.get('ROWS_PER_PAGE', 10)
    items, page, total_pages = paginar(visibles(state), state.page, rows)
    return items, page, total_pages


def _campos_de_peticion():
    unificado = request.args.get('unificado')
    if unificado is None:
        return CAMPOS_BASE
    return CAMPOS_UNIFICADOS if unificado in ('1', 'true', 'True') else CAMPOS_BASE


def _respuesta_omnibox(texto, campos):
    tipo = MatchClassifier(campos).classify(texto, coleccion())
    sugerencias = SuggestionEngine().suggest(texto, indice(campos))
    return {
        'tipo': tipo.value if tipo else None,
        'sugerencias': [s.to_dict() for s in sugerencias],
    }


# =================================================================
# OMNIBOX
# =================================================================

@busqueda_bp.route('/api/muebles/clasificar', methods=['GET'])
@login_required
@permission_required('busqueda.consultar_muebles')
def clasificar():
    texto = request.args.get('q', '')
    tipo = MatchClassifier(_campos_de_peticion()).classify(texto, coleccion())
    return jsonify({'tipo': tipo.value if tipo else None})


@busqueda_bp.route('/api/muebles/sugerencias', methods=['GET'])
@login_required
@permission_required('busqueda.consultar_muebles')
def sugerencias():
    texto = request.args.get('q', '')
    resultado = SuggestionEngine().suggest(texto, indice(_campos_de_peticion()))
    return jsonify([s.to_dict() for s in resultado])


@busqueda_bp.route('/api/muebles/termino', methods=['POST'])
@login_required
@permission_required('busqueda.consultar_muebles')
def actualizar_termino():
    """Recibe el texto de la caja de búsqueda y devuelve su clasificación y sugerencias."""
    data = request.get_json(silent=True) or {}
    state = cargar_estado()
    if 'unificado' in data:
        state.unificado = bool(data.get('unificado'))
    state.set_term(data.get('termino', ''))
    guardar_estado(state)
    return jsonify(_respuesta_omnibox(state.termino.raw, state.campos))


# =================================================================
# FILTROS ACTIVOS
# =================================================================

def _estado_filtros(state):
    return {'filtros': state.filtros.to_list(), 'page': state.page, 'termino': state.termino.raw}


@busqueda_bp.route('/api/muebles/filtros', methods=['GET'])
@login_required
@permission_required('busqueda.consultar_muebles')
def listar_filtros():
    return jsonify(_estado_filtros(cargar_estado()))


@busqueda_bp.route('/api/muebles/filtros', methods=['POST'])
@login_required
@permission_required('busqueda.consultar_muebles')
def agregar_filtro():
    data = request.get_json(silent=True) or {}
    term = (data.get('term') or '').strip()
    tipo = FieldType.parse(data.get('type'))
    if not term or tipo is None:
        return jsonify({'error': "Se requieren 'term' y un 'type' válido."}), 400

    state = cargar_estado()
    if data.get('sugerencia'):
        state.commit_suggestion(Suggestion(value=term, type=tipo))
    else:
        state.filtros.add(term, tipo)
    guardar_estado(state)
    return jsonify(_estado_filtros(state)), 201


@busqueda_bp.route('/api/muebles/filtros/guardar', methods=['POST'])
@login_required
@permission_required('busqueda.consultar_muebles')
def guardar_filtro_actual():
    """Convierte el término en vivo en filtro, con el tipo que le asigna el clasificador."""
    state = cargar_estado()
    tipo = MatchClassifier(state.campos).classify(state.termino.raw, coleccion())
    filtro = state.save_current_filter(tipo)
    if filtro is None:
        return jsonify({'error': 'El término actual no coincide con ningún campo.'}), 400
    guardar_estado(state)
    return jsonify(_estado_filtros(state)), 201


@busqueda_bp.route('/api/muebles/filtros/<int:index>', methods=['DELETE'])
@login_required
@permission_required('busqueda.consultar_muebles')
def quitar_filtro(index):
    state = cargar_estado()
    if not state.filtros.remove_at(index):
        return jsonify({'error': f'No existe el filtro {index}.'}), 404
    guardar_estado(state)
    return jsonify(_estado_filtros(state))


@busqueda_bp.route('/api/muebles/filtros', methods=['DELETE'])
@login_required
@permission_required('busqueda.consultar_muebles')
def limpiar_filtros():
    state = cargar_estado()
    state.clear_all()
    guardar_estado(state)
    return jsonify(_estado_filtros(state))


# =================================================================
# LISTADO FILTRADO
# =================================================================

@busqueda_bp.route('/api/muebles/orden', methods=['POST'])
@login_required
@permission_required('busqueda.consultar_muebles')
def cambiar_orden():
    data = request.get_json(silent=True) or {}
    state = cargar_estado()
    if not state.set_sort(data.get('campo'), data.get('direccion', 'asc')):
        return jsonify({'error': 'Campo u orden no válido.'}), 400
    guardar_estado(state)
    return jsonify({'orden': list(state.orden)})


@busqueda_bp.route('/api/muebles', methods=['GET'])
@login_required
@permission_required('busqueda.consultar_muebles')
def listar_muebles():
    state = cargar_estado()
    if 'page' in request.args:
        state.page = request.args.get('page', 1, type=int)
    todos = visibles(state)
    rows = current_app.config.get('ROWS_PER_PAGE', 10)
    items, state.page, total_pages = paginar(todos, state.page, rows)
    guardar_estado(state)
    return jsonify({
        'muebles': [r.to_dict() for r in items],
        'page': state.page,
        'total_pages': total_pages,
        'total': len(todos),
        'filtros': state.filtros.to_list(),
        'termino': state.deferred_term(),
        'orden': list(state.orden),
    })
