from extensions import db
from models import ActivityLog
from flask import current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime


def _recortar(valor, limite):
    if valor is None:
        return None
    valor = str(valor)
    return valor[:limite] if len(valor) > limite else valor


def log_activity(action, category=None, details=None, resource_id=None):
    """
    Registra un evento de negocio en la bitácora. Nunca interrumpe la operación
    que lo llama: si la escritura falla se registra en el log y se hace rollback.
    """
    try:
        user_id = current_user.id if current_user and current_user.is_authenticated else None

        log_entry = ActivityLog(
            user_id=user_id,
            action=_recortar(action, 100),
            category=_recortar(category, 100),
            details=_recortar(details, 500),
            resource_id=_recortar(resource_id, 50),
            timestamp=datetime.utcnow()
        )

        db.session.add(log_entry)
        db.session.commit()

    except SQLAlchemyError as e:
        current_app.logger.error(f"Error al registrar actividad: {e}")
        db.session.rollback()
