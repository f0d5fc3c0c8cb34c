# decorators.py

from functools import wraps
from flask import jsonify
from flask_login import current_user


def permission_required(endpoint_name):
    """
    Restringe una vista de la API a usuarios con el permiso ``endpoint_name``.
    Los administradores pasan siempre.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'error': 'Autenticación requerida.'}), 401

            if not current_user.is_admin() and endpoint_name not in current_user.permisos():
                return jsonify({'error': 'No tienes los permisos necesarios para esta acción.'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
