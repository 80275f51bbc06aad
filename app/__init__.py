# app/__init__.py

from flask import Flask
from .config import Config
from .extensions import db, migrate, csrf
from .utils.logging import get_logger
from .utils.numbers import fmt_points

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Inicializar extensiones
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Registrar blueprints
    from .blueprints.web.routes import web_bp
    from .blueprints.api.routes import api_bp
    from .blueprints.health.routes import health_bp

    app.register_blueprint(web_bp)
    # la API usa JSON + sesión, sin token de formulario
    csrf.exempt(api_bp)
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/health")

    # puntos con coma decimal en las vistas
    app.add_template_filter(fmt_points, "pts")

    if app.config.get("AUTO_CREATE_TABLES"):
        from . import models  # noqa: F401
        with app.app_context():
            db.create_all()

    get_logger("app").info(f"App iniciada (tz={app.config.get('PLANT_TIMEZONE')})")
    return app
