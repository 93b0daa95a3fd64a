import logging
from enum import Enum
from functools import wraps

from flask import render_template, request

from models import login_manager
from routes import get_identity, get_registry
from services.authorization import has_permission, role_class_allowed
from services.identity import IdentityStore
from services.permissions import Permission, RoleClass, RoleRegistry

log = logging.getLogger(__name__)


class GuardOutcome(Enum):
    LOADING = "loading"
    SIGN_IN = "sign_in"
    DENIED = "denied"
    ALLOW = "allow"


def decide(
    identity: IdentityStore,
    registry: RoleRegistry,
    *,
    permission=None,
    role_classes=None,
) -> GuardOutcome:
    """Orden fijo:

    1. Sin principal y restaurando sesión => LOADING (nunca DENIED antes de tiempo)
    2. Sin principal => SIGN_IN
    3. Clase de rol o permiso no permitido => DENIED
    4. ALLOW
    """
    principal = identity.principal
    if principal is None:
        return GuardOutcome.LOADING if identity.is_restoring else GuardOutcome.SIGN_IN

    if role_classes is not None and not role_class_allowed(principal, role_classes, registry):
        return GuardOutcome.DENIED
    if permission is not None and not has_permission(principal, permission, registry):
        return GuardOutcome.DENIED
    return GuardOutcome.ALLOW


def _guard(permission=None, role_classes=None):
    # Validar en import: un typo en el decorador revienta al arrancar
    if permission is not None:
        permission = Permission(permission)
    if role_classes is not None:
        role_classes = frozenset(RoleClass(c) for c in role_classes)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = get_identity()
            registry = get_registry()
            outcome = decide(identity, registry, permission=permission, role_classes=role_classes)

            if outcome is GuardOutcome.LOADING:
                return render_template("loading.html"), 200

            if outcome is GuardOutcome.SIGN_IN:
                # login_view + ?next=<ruta local>, vía Flask-Login
                return login_manager.unauthorized()

            if outcome is GuardOutcome.DENIED:
                principal = identity.principal
                log.info(
                    "Access denied: user=%s role=%s path=%s",
                    principal.id, principal.role_id, request.path,
                )
                # Solo se muestra el rol actual, nunca lo que hacía falta
                return (
                    render_template(
                        "access_restricted.html",
                        current_role=registry.display_name_for(principal.role_id),
                    ),
                    403,
                )

            return fn(*args, **kwargs)

        return wrapper

    return decorator


def require_login():
    """Cualquier principal autenticado."""
    return _guard()


def require_role_class(*allowed_classes):
    """Gating de páginas por clase gruesa (admin / manager / employee)."""
    return _guard(role_classes=allowed_classes)


def require_permission(permission):
    """Gating de acciones por permiso fino."""
    return _guard(permission=permission)
