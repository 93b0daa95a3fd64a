from datetime import datetime
from . import db


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Políticas de la empresa (pantalla Company Settings)
    time_zone = db.Column(db.String(64), default="UTC", nullable=False)
    work_week_start = db.Column(db.Integer, default=1, nullable=False)  # 0 = domingo, 1 = lunes
    default_shift_duration = db.Column(db.Integer, default=8, nullable=False)  # horas
    allow_shift_swapping = db.Column(db.Boolean, default=True, nullable=False)
    require_manager_approval = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    roles = db.relationship("Role", back_populates="company", cascade="all, delete-orphan")
    users = db.relationship("User", back_populates="company")
    departments = db.relationship("Department", back_populates="company", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Company {self.id} {self.name}>"
