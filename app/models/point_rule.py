# app/models/point_rule.py

from datetime import datetime
from enum import Enum

from app.extensions import db


class Sector(str, Enum):
    CORTE = "Corte"
    ARMADO = "Armado"
    COSTURA = "Costura"
    MONTAJE = "Montaje"
    LIMPIEZA = "Limpieza"
    EMBALAJE = "Embalaje"

    @classmethod
    def values(cls):
        return [s.value for s in cls]


class PointRule(db.Model):
    """
    Una celda de la matriz de puntos: (sector, modelo, operación) -> puntos por unidad.
    """
    __tablename__ = "point_rules"
    __table_args__ = (
        db.UniqueConstraint("sector", "model", "operation", name="uq_point_rule_triple"),
    )

    id = db.Column(db.Integer, primary_key=True)

    sector = db.Column(db.String(30), nullable=False, index=True)
    model = db.Column(db.String(120), nullable=False)
    operation = db.Column(db.String(120), nullable=False)

    points_per_unit = db.Column(db.Numeric(12, 4), nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "sector": self.sector,
            "model": self.model,
            "operation": self.operation,
            "points_per_unit": float(self.points_per_unit or 0),
        }
