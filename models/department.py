from datetime import datetime
from . import db


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    manager_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", use_alter=True, name="fk_departments_manager_id"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = db.relationship("Company", back_populates="departments")
    manager = db.relationship("User", foreign_keys=[manager_id])
    employees = db.relationship("User", back_populates="department", foreign_keys="User.department_id")

    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_department_company_name"),
    )

    def __repr__(self) -> str:
        return f"<Department {self.id} {self.name} company={self.company_id}>"
