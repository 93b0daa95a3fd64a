from flask import abort, flash, redirect, render_template, request, url_for
from flask_login import current_user

from routes import auth_bp, get_identity, get_registry
from services.errors import InvalidCredentials, RoleSwitchingDisabled


def _safe_next(value: str | None) -> str | None:
    # Solo rutas locales (evita open redirect)
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return None


@auth_bp.get("/login")
def login_get():
    if current_user.is_authenticated:
        return redirect(url_for("main.dashboard"))
    return render_template("login.html", next=_safe_next(request.args.get("next")))


@auth_bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    next_url = _safe_next(request.form.get("next"))

    try:
        get_identity().sign_in(email, password)
    except InvalidCredentials as e:
        flash(str(e), "error")
        return redirect(url_for("auth.login_get", next=next_url) if next_url else url_for("auth.login_get"))

    return redirect(next_url or url_for("main.dashboard"))


@auth_bp.post("/login/google")
def login_google():
    try:
        get_identity().sign_in_with_external_provider()
    except InvalidCredentials as e:
        flash(str(e), "error")
        return redirect(url_for("auth.login_get"))
    return redirect(url_for("main.dashboard"))


@auth_bp.get("/logout")
def logout():
    get_identity().sign_out()
    return redirect(url_for("auth.login_get"))


@auth_bp.post("/switch-role")
def switch_role():
    """Solo demo (DEMO_ROLE_SWITCHING). Con el flag apagado la ruta no existe."""
    identity = get_identity()
    if not identity.allow_role_switching:
        abort(404)
    if not identity.is_authenticated:
        return redirect(url_for("auth.login_get"))

    try:
        identity.switch_role(request.form.get("role_class") or "", get_registry())
    except RoleSwitchingDisabled:
        abort(404)
    except ValueError:
        flash("Unknown role class.", "error")
    return redirect(url_for("main.dashboard"))
