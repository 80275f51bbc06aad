# app/services/catalogs.py

from datetime import datetime
from typing import List, Optional

from flask import current_app

from app.extensions import db
from app.models import Operator, ProductModel, Operation, NewsItem
from app.services.auth import hash_secret
from app.utils.dates import parse_datetime, plant_now, to_plant_naive
from app.utils.logging import get_logger

logger = get_logger("catalogs")

CATALOGS = {
    "operators": Operator,
    "models": ProductModel,
    "operations": Operation,
}

NEWS_PRIORITIES = ("normal", "high")


def _catalog_model(kind: str):
    model = CATALOGS.get(kind)
    if model is None:
        raise ValueError(f"Catálogo no soportado: {kind}")
    return model


def list_catalog(kind: str) -> List[str]:
    model = _catalog_model(kind)
    q = model.query
    if model is Operator:
        q = q.filter(Operator.active.is_(True))
    return [row.name for row in q.order_by(model.name.asc()).all()]


def add_catalog_item(kind: str, name: str):
    model = _catalog_model(kind)
    name = str(name or "").strip()
    if not name:
        raise ValueError("El nombre no puede estar vacío.")

    existing = model.query.filter_by(name=name).first()
    if existing is not None:
        # operario dado de baja: se reactiva
        if model is Operator and not existing.active:
            existing.active = True
            db.session.commit()
            return existing
        raise ValueError(f"Ya existe: {name}")

    row = model(name=name)
    db.session.add(row)
    db.session.commit()
    logger.info(f"Catálogo {kind}: alta {name}")
    return row


def remove_catalog_item(kind: str, name: str) -> None:
    """
    Operarios: baja lógica (sus registros históricos conservan el nombre).
    Modelos y operaciones: se eliminan.
    """
    model = _catalog_model(kind)
    row = model.query.filter_by(name=name).first()
    if row is None:
        raise LookupError(f"No existe: {name}")

    if model is Operator:
        row.active = False
    else:
        db.session.delete(row)
    db.session.commit()
    logger.info(f"Catálogo {kind}: baja {name}")


def set_operator_pin(name: str, pin: Optional[str]) -> None:
    op = Operator.query.filter_by(name=name).first()
    if op is None:
        raise LookupError(f"Operario no existe: {name}")

    pin = str(pin or "").strip()
    if pin and (not pin.isdigit() or len(pin) < 4):
        raise ValueError("El PIN debe tener al menos 4 dígitos.")

    op.pin_hash = hash_secret(pin) if pin else None
    db.session.commit()


# ----------------------------
# noticias
# ----------------------------
def _tz() -> str:
    return current_app.config.get("PLANT_TIMEZONE", "UTC")


def active_news(now: Optional[datetime] = None) -> List[NewsItem]:
    """
    Vencimientos en hora de planta (naive), igual que los registros.
    """
    now = now or plant_now(_tz())
    return (
        NewsItem.query
        .filter(NewsItem.expires_at > now)
        .order_by(NewsItem.priority.asc(), NewsItem.created_at.desc())
        .all()
    )


def add_news(title: str, content: str, expires_at, priority: str = "normal") -> NewsItem:
    title = str(title or "").strip()
    if not title:
        raise ValueError("La noticia necesita un título.")

    expires = parse_datetime(expires_at)
    if expires is None:
        raise ValueError(f"Vencimiento no válido: {expires_at}")
    expires = to_plant_naive(expires, _tz())

    priority = (priority or "normal").strip().lower()
    if priority not in NEWS_PRIORITIES:
        raise ValueError(f"Prioridad no válida: {priority}")

    item = NewsItem(
        title=title, content=content or "", expires_at=expires, priority=priority,
        created_at=plant_now(_tz()),
    )
    db.session.add(item)
    db.session.commit()
    return item


def delete_news(news_id: int) -> None:
    item = db.session.get(NewsItem, news_id)
    if item is None:
        raise LookupError(f"Noticia no existe: {news_id}")
    db.session.delete(item)
    db.session.commit()
