"""Identity Store: el principal autenticado de la sesión actual.

Es el único que escribe la llave de sesión del principal. Todos los demás
(evaluador, guard, páginas) solo lo leen. Se construye una instancia por
request y se inyecta donde haga falta (ver `routes.get_identity`).

Estados: Unauthenticated -> sign_in -> Authenticated -> sign_out -> Unauthenticated.
`restore_session` solo sube de Unauthenticated a Authenticated, nunca degrada;
`revalidate` es el paso aparte que revoca o refresca contra la BD.
"""

import logging
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import MutableMapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.user import User
from services.errors import InvalidCredentials, MalformedSession, RoleSwitchingDisabled
from services.permissions import RoleClass, RoleRegistry

log = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "scheduler_user"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


@dataclass
class Principal:
    id: int
    name: str
    email: str
    role_id: str
    company_id: int
    is_active: bool = True
    department_id: Optional[int] = None
    manager_id: Optional[int] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    # Interfaz que espera Flask-Login (current_user)
    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.id)

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            name=user.full_name,
            email=user.email,
            role_id=user.role_id,
            company_id=user.company_id,
            is_active=bool(user.is_active),
            department_id=user.department_id,
            manager_id=user.manager_id,
            job_title=user.job_title,
            phone_number=user.phone_number,
            avatar=user.avatar,
            created_at=_iso(user.created_at),
            last_login=_iso(user.last_login),
        )

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, data) -> "Principal":
        """Reconstruye el registro plano guardado en sesión.

        No hay negociación de versión: cualquier forma inesperada es
        MalformedSession.
        """
        if not isinstance(data, dict):
            raise MalformedSession()

        known = {f.name for f in fields(cls)}
        if set(data) - known:
            raise MalformedSession()

        try:
            principal = cls(**data)
        except TypeError as e:
            raise MalformedSession() from e

        def _is_int(v):
            return isinstance(v, int) and not isinstance(v, bool)

        if not _is_int(principal.id) or not _is_int(principal.company_id):
            raise MalformedSession()
        for name in ("name", "email", "role_id"):
            value = getattr(principal, name)
            if not isinstance(value, str) or not value.strip():
                raise MalformedSession()
        if not isinstance(principal.is_active, bool):
            raise MalformedSession()
        for name in ("department_id", "manager_id"):
            value = getattr(principal, name)
            if value is not None and not _is_int(value):
                raise MalformedSession()
        return principal


class IdentityStore:
    def __init__(
        self,
        storage: MutableMapping,
        db: Session,
        *,
        session_key: str = DEFAULT_SESSION_KEY,
        default_email: str = "company@demo.com",
        allow_role_switching: bool = False,
    ):
        self.storage = storage
        self.db = db
        self.session_key = session_key
        self.default_email = default_email
        self.allow_role_switching = allow_role_switching

        self.principal: Optional[Principal] = None
        self.is_restoring = True

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    # -------------------------
    # Helpers
    # -------------------------
    def _activate(self, user: User) -> Principal:
        principal = Principal.from_user(user)
        self.principal = principal
        self.storage[self.session_key] = principal.to_record()
        return principal

    def _find_active_user(self, email: str) -> Optional[User]:
        email = (email or "").strip().lower()
        if not email:
            return None
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == email, User.is_active.is_(True))
            .first()
        )

    # -------------------------
    # Operaciones
    # -------------------------
    def restore_session(self) -> Optional[Principal]:
        if self.principal is None:
            raw = self.storage.get(self.session_key)
            if raw is not None:
                try:
                    self.principal = Principal.from_record(raw)
                except MalformedSession:
                    log.warning("Discarding malformed session payload under %r", self.session_key)
                    self.storage.pop(self.session_key, None)
        self.is_restoring = False
        return self.principal

    def revalidate(self) -> Optional[Principal]:
        """Contrasta el principal restaurado con la fila actual de `users`.

        Usuario borrado o inactivo => sign_out. Rol o empresa distintos =>
        se vuelve a activar desde la fila. El resto del registro queda tal cual.
        """
        if self.principal is None:
            return None

        user = self.db.get(User, self.principal.id)
        if user is None or not user.is_active:
            log.info("Session revoked for user=%s", self.principal.id)
            self.sign_out()
            return None

        if user.role_id != self.principal.role_id or user.company_id != self.principal.company_id:
            log.info(
                "Session refreshed for %s: role %s -> %s",
                user.email, self.principal.role_id, user.role_id,
            )
            return self._activate(user)
        return self.principal

    def sign_in(self, email: str, password: str) -> Principal:
        user = self._find_active_user(email)
        if not user or not user.check_password(password or ""):
            log.info("Sign-in failed for %s", (email or "").strip().lower())
            raise InvalidCredentials()

        user.last_login = datetime.utcnow()
        self.db.commit()

        principal = self._activate(user)
        self.is_restoring = False
        log.info("Sign-in ok for %s (role=%s)", principal.email, principal.role_id)
        return principal

    def sign_in_with_external_provider(self) -> Principal:
        """Placeholder de login federado: activa la cuenta admin demo sin contraseña.

        Una integración real (OAuth/OIDC) debe reemplazar esto y mantener el
        contrato de activar el principal al tener éxito.
        """
        user = self._find_active_user(self.default_email)
        if not user:
            # Sin seed no hay cuenta por defecto que activar
            log.error("Default principal %s not found; run the seed", self.default_email)
            raise InvalidCredentials("Federated sign-in is not available.")

        user.last_login = datetime.utcnow()
        self.db.commit()

        principal = self._activate(user)
        self.is_restoring = False
        log.info("External-provider sign-in as %s", principal.email)
        return principal

    def sign_out(self) -> None:
        if self.principal is not None:
            log.info("Sign-out for %s", self.principal.email)
        self.principal = None
        self.storage.pop(self.session_key, None)

    def switch_role(self, role_class, registry: RoleRegistry) -> Optional[Principal]:
        """Solo demo: cambia la sesión a otro usuario sembrado con la clase pedida."""
        if not self.allow_role_switching:
            raise RoleSwitchingDisabled()
        if self.principal is None:
            return None

        role_class = RoleClass(role_class)
        candidates = (
            self.db.query(User)
            .filter(User.company_id == self.principal.company_id, User.is_active.is_(True))
            .order_by(User.id.asc())
            .all()
        )
        for user in candidates:
            if registry.role_class_for(user.role_id) == role_class:
                log.info("Demo role switch %s -> %s", self.principal.email, user.email)
                return self._activate(user)
        return self.principal
