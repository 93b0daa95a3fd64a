import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models.role import Role

log = logging.getLogger(__name__)


class Permission(str, Enum):
    """Catálogo cerrado de permisos. Cada token se revisa por pertenencia exacta."""

    APPROVE_REQUESTS = "can_approve_requests"
    ASSIGN_SHIFTS = "can_assign_shifts"
    VIEW_ANALYTICS = "can_view_analytics"
    MANAGE_ROLES = "can_manage_roles"
    MANAGE_DEPARTMENTS = "can_manage_departments"
    CREATE_ACCOUNTS = "can_create_accounts"
    DELETE_ACCOUNTS = "can_delete_accounts"
    VIEW_COMPANY_ANALYTICS = "can_view_company_analytics"
    EDIT_SCHEDULES = "can_edit_schedules"
    VIEW_ALL_EMPLOYEES = "can_view_all_employees"
    MANAGE_UNAVAILABILITY = "can_manage_unavailability"
    SWAP_SHIFTS = "can_swap_shifts"
    REQUEST_TIME_OFF = "can_request_time_off"

    @property
    def label(self) -> str:
        # can_view_all_employees -> "View all employees"
        return self.value.removeprefix("can_").replace("_", " ").capitalize()


class RoleClass(str, Enum):
    """Clase gruesa del rol: decide navegación y layout, no acciones."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def parse_permissions(tokens: Iterable[str]) -> frozenset[Permission]:
    """Strict: un token desconocido lanza ValueError (formularios, seed)."""
    return frozenset(Permission(t) for t in tokens)


def parse_role_class(value: Optional[str]) -> RoleClass:
    try:
        return RoleClass(value)
    except ValueError:
        return RoleClass.EMPLOYEE


@dataclass(frozen=True)
class RoleSnapshot:
    id: str
    name: str
    display_name: str
    permissions: frozenset
    role_class: RoleClass
    is_default: bool
    is_system_defined: bool

    @classmethod
    def from_model(cls, role: Role) -> "RoleSnapshot":
        perms = set()
        for token in role.permissions or []:
            try:
                perms.add(Permission(token))
            except ValueError:
                # Dato viejo o corrupto en BD: se ignora (fail closed)
                log.warning("Role %s has unknown permission token %r", role.id, token)
        return cls(
            id=role.id,
            name=role.name,
            display_name=role.display_name,
            permissions=frozenset(perms),
            role_class=parse_role_class(role.role_class),
            is_default=bool(role.is_default),
            is_system_defined=bool(role.is_system_defined),
        )


class RoleRegistry:
    """
    Foto en memoria de los roles de UNA empresa.

    - `permissions_for` y `role_class_for` nunca lanzan: un role_id desconocido
      devuelve conjunto vacío / EMPLOYEE.
    - No hace I/O después de construirse; se reconstruye en cada request.
    """

    def __init__(self, roles: Iterable[RoleSnapshot] = (), company_id: Optional[int] = None):
        self.company_id = company_id
        self._roles = {r.id: r for r in roles}

    @classmethod
    def load(cls, db: Session, *, company_id: int) -> "RoleRegistry":
        rows = db.query(Role).filter(Role.company_id == company_id).all()
        return cls((RoleSnapshot.from_model(r) for r in rows), company_id=company_id)

    def get(self, role_id: Optional[str]) -> Optional[RoleSnapshot]:
        if role_id is None:
            return None
        return self._roles.get(role_id)

    def __contains__(self, role_id) -> bool:
        return role_id in self._roles

    def __iter__(self):
        return iter(self._roles.values())

    def __len__(self) -> int:
        return len(self._roles)

    def permissions_for(self, role_id: Optional[str]) -> frozenset:
        role = self.get(role_id)
        if role is None:
            if role_id is not None:
                log.warning("Unknown role %r resolved to no permissions", role_id)
            return frozenset()
        return role.permissions

    def role_class_for(self, role_id: Optional[str]) -> RoleClass:
        role = self.get(role_id)
        if role is None:
            return RoleClass.EMPLOYEE
        return role.role_class

    def display_name_for(self, role_id: Optional[str]) -> str:
        role = self.get(role_id)
        if role is None:
            return "Unknown role"
        return role.display_name


# =========================
# Roles sembrados por empresa
# =========================
ADMIN_ROLE_KEY = "admin"
MANAGER_ROLE_KEY = "manager"
MANAGER_ASSISTANT_ROLE_KEY = "manager-assistant"
EMPLOYEE_ROLE_KEY = "employee"


def seeded_role_id(company_id: int, key: str) -> str:
    """El id de rol es global (PK), por eso los roles sembrados llevan la empresa."""
    return f"role-{key}-{company_id}"


SEED_ROLES = [
    {
        "key": ADMIN_ROLE_KEY,
        "name": "company_admin",
        "display_name": "Company Admin",
        "role_class": RoleClass.ADMIN,
        "is_default": False,
        "is_system_defined": True,
        "permissions": [
            Permission.APPROVE_REQUESTS,
            Permission.ASSIGN_SHIFTS,
            Permission.VIEW_ANALYTICS,
            Permission.MANAGE_ROLES,
            Permission.MANAGE_DEPARTMENTS,
            Permission.CREATE_ACCOUNTS,
            Permission.DELETE_ACCOUNTS,
            Permission.VIEW_COMPANY_ANALYTICS,
            Permission.EDIT_SCHEDULES,
            Permission.VIEW_ALL_EMPLOYEES,
            Permission.MANAGE_UNAVAILABILITY,
        ],
    },
    {
        "key": MANAGER_ROLE_KEY,
        "name": "manager",
        "display_name": "Manager",
        "role_class": RoleClass.MANAGER,
        "is_default": True,
        "is_system_defined": False,
        "permissions": [
            Permission.APPROVE_REQUESTS,
            Permission.ASSIGN_SHIFTS,
            Permission.VIEW_ANALYTICS,
            Permission.EDIT_SCHEDULES,
            Permission.VIEW_ALL_EMPLOYEES,
            Permission.MANAGE_UNAVAILABILITY,
        ],
    },
    {
        "key": MANAGER_ASSISTANT_ROLE_KEY,
        "name": "manager_assistant",
        "display_name": "Manager Assistant",
        "role_class": RoleClass.MANAGER,
        "is_default": True,
        "is_system_defined": False,
        "permissions": [
            Permission.ASSIGN_SHIFTS,
            Permission.APPROVE_REQUESTS,
            Permission.EDIT_SCHEDULES,
        ],
    },
    {
        "key": EMPLOYEE_ROLE_KEY,
        "name": "employee",
        "display_name": "Employee",
        "role_class": RoleClass.EMPLOYEE,
        "is_default": True,
        "is_system_defined": False,
        "permissions": [
            Permission.SWAP_SHIFTS,
            Permission.REQUEST_TIME_OFF,
            Permission.MANAGE_UNAVAILABILITY,
        ],
    },
]
