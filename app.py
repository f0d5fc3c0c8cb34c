from flask import Flask, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError, ProgrammingError
import logging

import config
from extensions import db, migrate, login_manager
from database import DataSourceError, MuebleDataSource
from log_activity import log_activity


def create_app(config_overrides=None):
    # --- INICIALIZACIÓN Y CONFIGURACIÓN ---
    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.SECRET_KEY
    app.config['SQLALCHEMY_DATABASE_URI'] = config.database_uri()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SEARCH_SETTLE_SECONDS'] = config.SEARCH_SETTLE_SECONDS
    app.config['ROWS_PER_PAGE'] = config.ROWS_PER_PAGE
    app.json.ensure_ascii = False
    if config_overrides:
        app.config.update(config_overrides)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # --- IMPORTACIÓN DE MODELOS Y BLUEPRINTS ---
    from models import User
    from routes.busqueda import busqueda_bp
    from routes.resguardos import resguardos_bp

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Autenticación requerida.'}), 401

    app.register_blueprint(busqueda_bp)
    app.register_blueprint(resguardos_bp)

    @app.errorhandler(DataSourceError)
    def handle_data_source_error(error):
        app.logger.error(f"Error de la fuente de datos: {error.message}", exc_info=error.original is not None)
        return jsonify({'error': error.message}), 503

    # --- RUTAS DE AUTENTICACIÓN ---

    @app.route('/login', methods=['POST'])
    def login():
        data = request.get_json(silent=True) or {}
        username = data.get('username')
        password = data.get('password')
        if not username or not password:
            return jsonify({'error': 'Usuario y contraseña son requeridos.'}), 400

        user = User.query.filter_by(username=username).first()
        if user and user.check_password(password):
            login_user(user)
            log_activity(action=f"Inicio de sesión del usuario: {username}", category="Login")
            return jsonify({'message': '¡Inicio de sesión exitoso!', 'username': user.username})
        return jsonify({'error': 'Usuario o contraseña incorrectos.'}), 401

    @app.route('/logout', methods=['POST'])
    @login_required
    def logout():
        log_activity(action=f"Cierre de sesión del usuario: {current_user.username}", category="Logout")
        logout_user()
        return jsonify({'message': 'Sesión cerrada.'})

    return app


def asegurar_permisos():
    """Da de alta los permisos que usan los blueprints y que aún no existen."""
    from models import Permission
    existentes = {p.endpoint for p in Permission.query.all()}
    for endpoint, descripcion in config.PERMISSIONS:
        if endpoint not in existentes:
            db.session.add(Permission(endpoint=endpoint, description=descripcion))
    db.session.commit()


def init_tables(app):
    """
    Verifica si las tablas existen y las crea si es necesario; también crea los
    contadores de folios y los permisos que falten.
    """
    with app.app_context():
        try:
            inspector = inspect(db.engine)
            if not inspector.get_table_names():
                app.logger.info("No se encontraron tablas, creando esquema completo...")
                db.create_all()
            MuebleDataSource().asegurar_folios(config.FOLIO_DEFAULTS)
            asegurar_permisos()
        except (OperationalError, ProgrammingError) as e:
            app.logger.error(f"No se pudo conectar a la base de datos '{config.DB_CONFIG['database']}': {e}")
            raise


# --- Bloque para ejecutar la aplicación en modo de desarrollo ---
if __name__ == '__main__':
    app = create_app()
    init_tables(app)
    app.run(debug=True)
