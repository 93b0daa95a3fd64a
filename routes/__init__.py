from flask import Blueprint, current_app, g, session

from models import db, login_manager
from services.identity import IdentityStore
from services.permissions import RoleRegistry

auth_bp = Blueprint("auth", __name__)
main_bp = Blueprint("main", __name__)


def get_identity() -> IdentityStore:
    """Identity Store del request actual (uno por request, inyectado vía `g`)."""
    identity = g.get("identity")
    if identity is None:
        cfg = current_app.config
        identity = IdentityStore(
            session,
            db.session,
            session_key=cfg.get("SESSION_PRINCIPAL_KEY", "scheduler_user"),
            default_email=cfg.get("DEFAULT_PRINCIPAL_EMAIL", "company@demo.com"),
            allow_role_switching=bool(cfg.get("DEMO_ROLE_SWITCHING", False)),
        )
        g.identity = identity
    return identity


def get_registry() -> RoleRegistry:
    """Roles de la empresa del principal. Se recalcula en cada request (sin caché)."""
    registry = g.get("role_registry")
    principal = get_identity().principal
    if registry is None or registry.company_id != (principal.company_id if principal else None):
        if principal is None:
            registry = RoleRegistry()
        else:
            registry = RoleRegistry.load(db.session, company_id=principal.company_id)
        g.role_registry = registry
    return registry


def restore_identity() -> None:
    """before_request: restaura la sesión persistida y la contrasta con `users`."""
    identity = get_identity()
    identity.restore_session()
    identity.revalidate()


@login_manager.request_loader
def load_principal(request):
    # current_user sale de aquí; el único que escribe la sesión es el IdentityStore
    return get_identity().principal
