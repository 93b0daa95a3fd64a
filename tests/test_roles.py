import pytest

from models.role import Role
from services import roles as role_service
from services.errors import RoleInUse, SystemRoleImmutable, UnknownRole, ValidationError
from services.permissions import Permission, RoleClass, RoleRegistry


def test_normalize_role_name():
    assert role_service.normalize_role_name("  Shift   Lead ") == "shift_lead"
    assert role_service.normalize_role_name(None) == ""


def test_create_role(db_session, company_id):
    role = role_service.create_role(
        db_session,
        company_id=company_id,
        name="Shift Lead",
        display_name="Shift Lead",
        permissions=["can_assign_shifts", "can_assign_shifts", Permission.EDIT_SCHEDULES],
        role_class="manager",
    )
    assert role.name == "shift_lead"
    assert role.permissions == ["can_assign_shifts", "can_edit_schedules"]
    assert role.role_class == "manager"
    assert role.is_default is False
    assert role.is_system_defined is False

    registry = RoleRegistry.load(db_session, company_id=company_id)
    assert registry.role_class_for(role.id) is RoleClass.MANAGER


@pytest.mark.parametrize("name,display_name", [("", "X"), ("x", "  "), (None, None)])
def test_create_role_requires_fields(db_session, company_id, name, display_name):
    with pytest.raises(ValidationError):
        role_service.create_role(db_session, company_id=company_id, name=name, display_name=display_name)


def test_create_role_rejects_unknown_permission(db_session, company_id):
    with pytest.raises(ValidationError):
        role_service.create_role(
            db_session, company_id=company_id, name="x", display_name="X", permissions=["can_fly"]
        )


def test_create_role_rejects_duplicate_name(db_session, company_id):
    with pytest.raises(ValidationError):
        role_service.create_role(db_session, company_id=company_id, name="Manager", display_name="Other")


def test_delete_role_in_use(db_session, company_id, role_ids):
    before = {r.id for r in role_service.list_roles(db_session, company_id=company_id)}
    with pytest.raises(RoleInUse) as exc:
        role_service.delete_role(db_session, company_id=company_id, role_id=role_ids["employee"])
    assert exc.value.user_count == 1
    after = {r.id for r in role_service.list_roles(db_session, company_id=company_id)}
    assert before == after


def test_delete_system_role_refused_regardless_of_users(db_session, company_id, role_ids):
    from models.user import User

    # Sin usuarios asignados sigue siendo intocable
    for user in db_session.query(User).filter_by(role_id=role_ids["admin"]).all():
        user.role_id = role_ids["manager"]
    db_session.commit()

    with pytest.raises(SystemRoleImmutable):
        role_service.delete_role(db_session, company_id=company_id, role_id=role_ids["admin"])
    assert db_session.get(Role, role_ids["admin"]) is not None


def test_delete_unused_role(db_session, company_id, role_ids):
    role_service.delete_role(db_session, company_id=company_id, role_id=role_ids["manager-assistant"])
    assert db_session.get(Role, role_ids["manager-assistant"]) is None


def test_update_system_role_refused(db_session, company_id, role_ids):
    with pytest.raises(SystemRoleImmutable):
        role_service.update_role(
            db_session,
            company_id=company_id,
            role_id=role_ids["admin"],
            name="company_admin",
            display_name="Boss",
            permissions=[],
        )


def test_update_role(db_session, company_id, role_ids):
    role = role_service.update_role(
        db_session,
        company_id=company_id,
        role_id=role_ids["manager-assistant"],
        name="Assistant Manager",
        display_name="Assistant Manager",
        permissions=["can_approve_requests"],
    )
    assert role.name == "assistant_manager"
    assert role.permissions == ["can_approve_requests"]
    # role_class no enviado => se conserva
    assert role.role_class == "manager"


def test_clone_role(db_session, company_id, role_ids):
    clone = role_service.clone_role(db_session, company_id=company_id, role_id=role_ids["admin"])
    assert clone.id != role_ids["admin"]
    assert clone.name == "company_admin_copy"
    assert clone.display_name == "Company Admin (Copy)"
    assert clone.is_system_defined is False
    assert clone.is_default is False
    assert len(clone.permissions) == 11

    again = role_service.clone_role(db_session, company_id=company_id, role_id=role_ids["admin"])
    assert again.name == "company_admin_copy_2"


def test_roles_are_scoped_to_company(db_session, company_id, role_ids):
    with pytest.raises(UnknownRole):
        role_service.get_role(db_session, company_id=company_id + 1, role_id=role_ids["manager"])


def test_seed_company_roles_is_idempotent(db_session, company_id):
    from models.company import Company

    company = db_session.get(Company, company_id)
    role_service.seed_company_roles(db_session, company)
    db_session.commit()
    assert db_session.query(Role).filter_by(company_id=company_id).count() == 4


# -------------------------
# Rutas
# -------------------------
def test_route_create_role(admin_client, app):
    resp = admin_client.post(
        "/roles/new",
        data={
            "name": "Night Crew",
            "display_name": "Night Crew",
            "permissions": ["can_swap_shifts", "can_request_time_off"],
            "role_class": "employee",
        },
    )
    assert resp.status_code == 302

    from models import db

    with app.app_context():
        role = db.session.query(Role).filter_by(name="night_crew").one()
        assert role.permissions == ["can_swap_shifts", "can_request_time_off"]


def test_route_delete_in_use_flashes_reason(admin_client, role_ids):
    resp = admin_client.post(f"/roles/{role_ids['employee']}/delete", follow_redirects=True)
    assert resp.status_code == 200
    assert "assigned to 1 user(s)" in resp.get_data(as_text=True)


def test_route_delete_system_role_flashes_reason(admin_client, role_ids):
    resp = admin_client.post(f"/roles/{role_ids['admin']}/delete", follow_redirects=True)
    assert "System-defined roles cannot be" in resp.get_data(as_text=True)


def test_route_matrix(admin_client):
    body = admin_client.get("/roles/matrix").get_data(as_text=True)
    assert "Permissions Matrix" in body
    assert "Manager Assistant" in body


def test_role_edit_is_seen_on_next_request(admin_client, login, client, app, role_ids):
    # Quita can_view_all_employees al manager y verifica que se aplique sin caché
    admin_client.post(
        f"/roles/{role_ids['manager']}/edit",
        data={
            "name": "manager",
            "display_name": "Manager",
            "permissions": ["can_approve_requests"],
            "role_class": "manager",
        },
    )
    admin_client.get("/logout")

    login(client, "manager@demo.com")
    assert client.get("/employees").status_code == 403
