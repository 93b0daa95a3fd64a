from datetime import datetime
from . import db


class Role(db.Model):
    """
    Rol de una empresa: paquete de permisos.
    - `permissions` guarda los tokens como lista JSON.
    - `role_class` es la clase gruesa (admin/manager/employee) que decide el layout.
    - Solo un rol por empresa es `is_system_defined` (Company Admin) y no se puede tocar.
    """
    __tablename__ = "roles"

    id = db.Column(db.String(64), primary_key=True)  # role-admin, role-manager, role-<hex>
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(80), nullable=False)  # snake_case
    display_name = db.Column(db.String(120), nullable=False)
    permissions = db.Column(db.JSON, default=list, nullable=False)
    role_class = db.Column(db.String(20), default="employee", nullable=False)

    is_default = db.Column(db.Boolean, default=False, nullable=False)
    is_system_defined = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = db.relationship("Company", back_populates="roles")
    users = db.relationship("User", back_populates="role")

    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_role_company_name"),
    )

    def __repr__(self) -> str:
        return f"<Role {self.id} {self.name} company={self.company_id} system={self.is_system_defined}>"
