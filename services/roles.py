import logging
import re
import uuid
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.company import Company
from models.role import Role
from models.user import User
from services.errors import RoleInUse, SystemRoleImmutable, UnknownRole, ValidationError
from services.permissions import SEED_ROLES, Permission, RoleClass, parse_role_class, seeded_role_id

log = logging.getLogger(__name__)

_WS = re.compile(r"\s+")


def normalize_role_name(value: Optional[str]) -> str:
    """'Shift Lead ' -> 'shift_lead'"""
    return _WS.sub("_", (value or "").strip().lower())


def _new_role_id() -> str:
    return f"role-{uuid.uuid4().hex[:12]}"


def _clean_permissions(tokens: Iterable) -> list[str]:
    """Tokens del formulario -> lista ordenada según el catálogo, sin duplicados."""
    try:
        chosen = {Permission(t) for t in tokens or []}
    except ValueError as e:
        raise ValidationError(f"Unknown permission: {e}") from e
    return [p.value for p in Permission if p in chosen]


def get_role(db: Session, *, company_id: int, role_id: str) -> Role:
    role = (
        db.query(Role)
        .filter(Role.id == role_id, Role.company_id == company_id)
        .first()
    )
    if not role:
        raise UnknownRole()
    return role


def list_roles(db: Session, *, company_id: int) -> list[Role]:
    return (
        db.query(Role)
        .filter(Role.company_id == company_id)
        .order_by(Role.is_system_defined.desc(), Role.display_name.asc())
        .all()
    )


def role_user_counts(db: Session, *, company_id: int) -> dict:
    rows = (
        db.query(User.role_id, func.count(User.id))
        .filter(User.company_id == company_id)
        .group_by(User.role_id)
        .all()
    )
    return {role_id: int(n) for role_id, n in rows}


def _check_name_free(db: Session, company_id: int, name: str, exclude_id: Optional[str] = None):
    q = db.query(Role.id).filter(Role.company_id == company_id, Role.name == name)
    if exclude_id:
        q = q.filter(Role.id != exclude_id)
    if q.first() is not None:
        raise ValidationError(f"A role named '{name}' already exists.")


def create_role(
    db: Session,
    *,
    company_id: int,
    name: str,
    display_name: str,
    permissions: Iterable = (),
    role_class=RoleClass.EMPLOYEE,
) -> Role:
    name = normalize_role_name(name)
    display_name = (display_name or "").strip()
    if not name or not display_name:
        raise ValidationError()
    _check_name_free(db, company_id, name)

    role = Role(
        id=_new_role_id(),
        company_id=company_id,
        name=name,
        display_name=display_name,
        permissions=_clean_permissions(permissions),
        role_class=parse_role_class(role_class).value,
        is_default=False,
        is_system_defined=False,
    )
    db.add(role)
    db.commit()
    log.info("Role created %s (%s) company=%s", role.id, role.name, company_id)
    return role


def update_role(
    db: Session,
    *,
    company_id: int,
    role_id: str,
    name: str,
    display_name: str,
    permissions: Iterable = (),
    role_class=None,
) -> Role:
    role = get_role(db, company_id=company_id, role_id=role_id)
    if role.is_system_defined:
        raise SystemRoleImmutable()

    name = normalize_role_name(name)
    display_name = (display_name or "").strip()
    if not name or not display_name:
        raise ValidationError()
    _check_name_free(db, company_id, name, exclude_id=role.id)

    role.name = name
    role.display_name = display_name
    role.permissions = _clean_permissions(permissions)
    if role_class is not None:
        role.role_class = parse_role_class(role_class).value
    db.commit()
    log.info("Role updated %s (%s) company=%s", role.id, role.name, company_id)
    return role


def clone_role(db: Session, *, company_id: int, role_id: str) -> Role:
    source = get_role(db, company_id=company_id, role_id=role_id)

    # Evita chocar con un clon anterior: manager_copy, manager_copy_2, ...
    base = f"{source.name}_copy"
    name = base
    n = 2
    while db.query(Role.id).filter(Role.company_id == company_id, Role.name == name).first():
        name = f"{base}_{n}"
        n += 1

    clone = Role(
        id=_new_role_id(),
        company_id=company_id,
        name=name,
        display_name=f"{source.display_name} (Copy)",
        permissions=list(source.permissions or []),
        role_class=source.role_class,
        is_default=False,
        is_system_defined=False,
    )
    db.add(clone)
    db.commit()
    log.info("Role cloned %s -> %s company=%s", source.id, clone.id, company_id)
    return clone


def delete_role(db: Session, *, company_id: int, role_id: str) -> None:
    role = get_role(db, company_id=company_id, role_id=role_id)

    # Rol de sistema: se rechaza sin importar cuántos usuarios tenga
    if role.is_system_defined:
        raise SystemRoleImmutable()

    in_use = db.query(func.count(User.id)).filter(User.role_id == role.id).scalar() or 0
    if in_use:
        raise RoleInUse(int(in_use))

    db.delete(role)
    db.commit()
    log.info("Role deleted %s company=%s", role_id, company_id)


def seed_company_roles(db: Session, company: Company) -> dict:
    """Crea (o repara) los roles por defecto de una empresa. Idempotente.

    Devuelve {key: Role}.
    """
    out = {}
    for seed in SEED_ROLES:
        role_id = seeded_role_id(company.id, seed["key"])
        role = db.get(Role, role_id)
        if not role:
            role = Role(id=role_id, company_id=company.id)
            db.add(role)
        role.name = seed["name"]
        role.display_name = seed["display_name"]
        role.role_class = seed["role_class"].value
        role.permissions = [p.value for p in seed["permissions"]]
        role.is_default = seed["is_default"]
        role.is_system_defined = seed["is_system_defined"]
        out[seed["key"]] = role
    db.flush()
    return out
