import os
import tempfile

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret_key_change_me")

    # SQLite local por defecto
    DB_PATH = os.environ.get("DB_PATH", os.path.join(basedir, "scheduler.db"))
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cookies de sesión más seguras (ajusta en producción)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Llave única donde vive el principal serializado
    SESSION_PRINCIPAL_KEY = "scheduler_user"

    # Cuenta que activa el login federado (placeholder)
    DEFAULT_PRINCIPAL_EMAIL = os.environ.get("DEFAULT_PRINCIPAL_EMAIL", "company@demo.com")

    # Solo demo: permite cambiar de rol sin autenticarse. Nunca en producción.
    DEMO_ROLE_SWITCHING = _env_flag("DEMO_ROLE_SWITCHING")

    LOG_DIR = os.environ.get("LOG_DIR", os.path.join(basedir, "logs"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    DEBUG = _env_flag("FLASK_DEBUG")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    DEMO_ROLE_SWITCHING = True
    LOG_DIR = os.path.join(tempfile.gettempdir(), "scheduler-test-logs")
