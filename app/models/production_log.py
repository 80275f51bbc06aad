# app/models/production_log.py

from datetime import datetime

from app.extensions import db
from app.services.points import is_unrated


class ProductionLog(db.Model):
    __tablename__ = "production_logs"

    id = db.Column(db.Integer, primary_key=True)

    # fecha/hora del trabajo (no necesariamente la de carga)
    timestamp = db.Column(db.DateTime, nullable=False, index=True)

    operator_name = db.Column(db.String(120), nullable=False, index=True)

    sector = db.Column(db.String(30), nullable=False)
    model = db.Column(db.String(120), nullable=False)
    operation = db.Column(db.String(120), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    total_points = db.Column(db.Numeric(14, 4), nullable=False, default=0)

    order_number = db.Column(db.String(60))
    comments = db.Column(db.Text)

    # horario declarado del turno ("08:00" / "17:00")
    start_time = db.Column(db.String(5))
    end_time = db.Column(db.String(5))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_unrated(self) -> bool:
        """
        Trabajo sin valor en la matriz al momento de la carga.
        """
        return is_unrated(self.total_points, self.quantity)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "operator_name": self.operator_name,
            "sector": self.sector,
            "model": self.model,
            "operation": self.operation,
            "quantity": self.quantity,
            "total_points": float(self.total_points or 0),
            "order_number": self.order_number or "",
            "comments": self.comments or "",
            "start_time": self.start_time or "",
            "end_time": self.end_time or "",
            "unrated": self.is_unrated,
        }
