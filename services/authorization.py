from typing import Iterable, Optional

from services.permissions import Permission, RoleClass, RoleRegistry


def _scoped_role_id(principal, registry: RoleRegistry) -> Optional[str]:
    # Un principal de otra empresa se trata como rol desconocido (fail closed)
    if registry.company_id is not None and principal.company_id != registry.company_id:
        return None
    return principal.role_id


def has_permission(principal, permission, registry: RoleRegistry) -> bool:
    """True si el rol del principal incluye `permission`. Sin principal => False.

    `permission` acepta el enum o el token; un token que no existe en el
    catálogo lanza ValueError en vez de devolver False en silencio.
    """
    permission = Permission(permission)
    if principal is None:
        return False
    return permission in registry.permissions_for(_scoped_role_id(principal, registry))


def role_class_of(principal, registry: RoleRegistry) -> Optional[RoleClass]:
    if principal is None:
        return None
    return registry.role_class_for(_scoped_role_id(principal, registry))


def role_class_allowed(principal, allowed_classes: Iterable, registry: RoleRegistry) -> bool:
    if principal is None:
        return False
    allowed = {RoleClass(c) for c in allowed_classes}
    return role_class_of(principal, registry) in allowed


def permissions_of(principal, registry: RoleRegistry) -> list[Permission]:
    if principal is None:
        return []
    granted = registry.permissions_for(_scoped_role_id(principal, registry))
    # Orden del catálogo para mostrar en pantalla
    return [p for p in Permission if p in granted]
