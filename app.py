import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, flash, render_template, request
from flask_migrate import Migrate

from config import Config
from models import db, login_manager


migrate = Migrate()


def _configure_logging(app: Flask) -> None:
    log_dir = app.config.get("LOG_DIR") or os.path.join(os.path.dirname(__file__), "logs")
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=2_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    if not any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers):
        app.logger.addHandler(file_handler)
    app.logger.setLevel(level)

    # Los módulos usan logging.getLogger(__name__): mismo archivo
    for name in ("services", "routes"):
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
            logger.addHandler(file_handler)


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # -------------------------
    # Extensiones
    # -------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login_get"
    login_manager.login_message = "Please sign in to continue."
    login_manager.login_message_category = "message"

    # -------------------------
    # Importar modelos (Alembic)
    # -------------------------
    from models.company import Company  # noqa: F401
    from models.role import Role  # noqa: F401
    from models.department import Department  # noqa: F401
    from models.user import User  # noqa: F401
    from models.schedule_request import ScheduleRequest  # noqa: F401

    # -------------------------
    # Blueprints
    # -------------------------
    from routes import restore_identity
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.company import company_bp
    from routes.departments import departments_bp
    from routes.employees import employees_bp
    from routes.navigation import inject_layout
    from routes.requests import requests_bp
    from routes.analytics import analytics_bp
    from routes.roles import roles_bp

    blueprints = [
        auth_bp,
        main_bp,

        # Administración
        company_bp,
        roles_bp,
        departments_bp,
        employees_bp,

        # Solicitudes y reportes
        requests_bp,
        analytics_bp,
    ]

    for bp in blueprints:
        app.register_blueprint(bp)

    # Sesión: restaurar el principal antes de cualquier vista
    app.before_request(restore_identity)
    app.context_processor(inject_layout)

    # -------------------------
    # Logging + manejo global de errores
    # -------------------------
    _configure_logging(app)

    @app.errorhandler(500)
    def _handle_500(e):
        app.logger.exception("Unhandled 500: %s %s", request.method, request.path)
        flash("An internal error occurred. The problem has been logged.", "error")
        return render_template("error.html", message=None), 500

    @app.errorhandler(403)
    def _handle_403(e):
        return render_template("error.html", message="Access denied."), 403

    @app.errorhandler(404)
    def _handle_404(e):
        return render_template("404.html"), 404

    @app.cli.command("seed")
    def _seed_command():
        """Carga empresa, roles y usuarios demo."""
        from seed import seed_demo_data

        seed_demo_data(db.session)
        print("Seed ready. Login: company@demo.com / demo123")

    return app


app = create_app()


if __name__ == "__main__":
    # Debug controlado por config / variables de entorno
    app.run(debug=app.config.get("DEBUG", False))
