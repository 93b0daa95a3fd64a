from flask import current_app, request

from routes import get_identity, get_registry
from services.authorization import role_class_of
from services.permissions import RoleClass

# (título, endpoint). La navegación se arma por clase gruesa, no por permiso.
NAV_ITEMS = {
    RoleClass.ADMIN: [
        ("Dashboard", "main.dashboard"),
        ("Company Settings", "company.settings_get"),
        ("Role Management", "roles.roles_list"),
        ("Permissions Matrix", "roles.permissions_matrix"),
        ("Departments", "departments.departments_list"),
        ("All Employees", "employees.employees_list"),
        ("Requests", "requests.requests_list"),
        ("Analytics", "analytics.analytics"),
        ("My Profile", "main.profile"),
    ],
    RoleClass.MANAGER: [
        ("Dashboard", "main.dashboard"),
        ("Requests", "requests.requests_list"),
        ("Analytics", "analytics.analytics"),
        ("All Employees", "employees.employees_list"),
        ("My Profile", "main.profile"),
    ],
    RoleClass.EMPLOYEE: [
        ("Dashboard", "main.dashboard"),
        ("Requests", "requests.requests_list"),
        ("My Profile", "main.profile"),
    ],
}


def nav_items_for(role_class) -> list:
    if role_class is None:
        return []
    return NAV_ITEMS.get(RoleClass(role_class), NAV_ITEMS[RoleClass.EMPLOYEE])


def inject_layout():
    """context_processor: datos del chrome (navegación + header)."""
    identity = get_identity()
    principal = identity.principal
    registry = get_registry()
    role_class = role_class_of(principal, registry)
    return {
        "role_class": role_class,
        "role_name": registry.display_name_for(principal.role_id) if principal else None,
        "nav_items": nav_items_for(role_class),
        "current_endpoint": request.endpoint,
        "demo_role_switching": bool(current_app.config.get("DEMO_ROLE_SWITCHING")),
        "role_classes": list(RoleClass),
    }
