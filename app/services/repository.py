# app/services/repository.py

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from flask import current_app

from app.extensions import db
from app.models import AppSetting, PointRule, ProductionLog, Sector
from app.services.points import compute_points
from app.services.rules_cache import rules_cache
from app.utils.dates import parse_datetime, plant_now, to_plant_naive
from app.utils.logging import get_logger
from app.utils.numbers import parse_decimal, parse_quantity

logger = get_logger("repository")

TARGET_KEY = "productivity_target"
MATRIX_VERSION_KEY = "points_matrix_version"

PRICING_FIELDS = ("sector", "model", "operation", "quantity")
LOG_FIELDS = (
    "timestamp", "operator_name", "sector", "model", "operation", "quantity",
    "order_number", "comments", "start_time", "end_time",
)


def _tz() -> str:
    return current_app.config.get("PLANT_TIMEZONE", "UTC")


# ----------------------------
# settings
# ----------------------------
def _get_setting(key: str) -> Optional[str]:
    row = db.session.get(AppSetting, key)
    return row.value if row else None


def _set_setting(key: str, value: str) -> None:
    row = db.session.get(AppSetting, key)
    if row is None:
        row = AppSetting(key=key)
        db.session.add(row)
    row.value = value


def get_productivity_target() -> float:
    """
    Meta diaria de puntos por operario. Sin valor guardado -> default de config.
    """
    default = float(current_app.config.get("DEFAULT_PRODUCTIVITY_TARGET", 24960))
    stored = parse_decimal(_get_setting(TARGET_KEY), default=None)
    if stored is None or stored <= 0:
        return default
    return float(stored)


def set_productivity_target(value) -> float:
    target = parse_decimal(value, default=None)
    if target is None or target <= 0:
        raise ValueError("La meta diaria debe ser un número positivo.")
    _set_setting(TARGET_KEY, str(target))
    db.session.commit()
    logger.info(f"Meta diaria actualizada: {target}")
    return float(target)


# ----------------------------
# matriz de puntos
# ----------------------------
def matrix_version() -> str:
    return _get_setting(MATRIX_VERSION_KEY) or "0"


def _bump_matrix_version() -> None:
    current = int(matrix_version() or 0)
    _set_setting(MATRIX_VERSION_KEY, str(current + 1))


def list_rules() -> List[PointRule]:
    return (
        PointRule.query
        .order_by(PointRule.sector.asc(), PointRule.model.asc(), PointRule.operation.asc())
        .all()
    )


def current_rules():
    """
    Matriz vigente vía cache (se invalida sola con cada escritura).
    """
    rules_cache.ttl_seconds = int(current_app.config.get("RULES_CACHE_TTL_SECONDS", 300))
    return rules_cache.get(matrix_version(), PointRule.query.all)


def _validate_rule_fields(sector, model, operation, points_per_unit):
    sector = str(sector or "").strip()
    model = str(model or "").strip()
    operation = str(operation or "").strip()

    if sector not in Sector.values():
        raise ValueError(f"Sector no válido: {sector}")
    if not model or not operation:
        raise ValueError("Complete modelo y operación.")

    ppu = parse_decimal(points_per_unit, default=None)
    if ppu is None or ppu < 0:
        raise ValueError("Los puntos por unidad deben ser un número no negativo.")

    return sector, model, operation, ppu


def _triple_taken(sector, model, operation, exclude_id=None) -> bool:
    q = PointRule.query.filter_by(sector=sector, model=model, operation=operation)
    if exclude_id is not None:
        q = q.filter(PointRule.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def matrix_changed() -> None:
    _bump_matrix_version()
    db.session.commit()
    rules_cache.invalidate()


def add_rule(sector, model, operation, points_per_unit) -> PointRule:
    sector, model, operation, ppu = _validate_rule_fields(sector, model, operation, points_per_unit)

    if _triple_taken(sector, model, operation):
        raise ValueError("Ya existe una regla para esta combinación.")

    rule = PointRule(sector=sector, model=model, operation=operation, points_per_unit=ppu)
    db.session.add(rule)
    matrix_changed()

    logger.info(f"Regla creada id={rule.id} {sector}/{model}/{operation}={ppu}")
    return rule


def update_rule(rule_id: int, **fields) -> PointRule:
    rule = db.session.get(PointRule, rule_id)
    if rule is None:
        raise LookupError(f"Regla no existe: {rule_id}")

    sector, model, operation, ppu = _validate_rule_fields(
        fields.get("sector", rule.sector),
        fields.get("model", rule.model),
        fields.get("operation", rule.operation),
        fields.get("points_per_unit", rule.points_per_unit),
    )

    if _triple_taken(sector, model, operation, exclude_id=rule.id):
        raise ValueError("Ya existe una regla para esta combinación.")

    rule.sector = sector
    rule.model = model
    rule.operation = operation
    rule.points_per_unit = ppu
    matrix_changed()

    logger.info(f"Regla actualizada id={rule.id}")
    return rule


def delete_rule(rule_id: int) -> None:
    rule = db.session.get(PointRule, rule_id)
    if rule is None:
        raise LookupError(f"Regla no existe: {rule_id}")
    db.session.delete(rule)
    matrix_changed()
    logger.info(f"Regla eliminada id={rule_id}")


# ----------------------------
# registros de producción
# ----------------------------
def _day_bounds(start: date, end: date):
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def logs_in_range(start: date, end: date, operator: Optional[str] = None) -> List[ProductionLog]:
    """
    Registros entre start y end (inclusive), más recientes primero.
    """
    lo, hi = _day_bounds(start, end)
    q = ProductionLog.query.filter(ProductionLog.timestamp >= lo, ProductionLog.timestamp < hi)
    if operator:
        q = q.filter(ProductionLog.operator_name == operator)
    return q.order_by(ProductionLog.timestamp.desc()).all()


def logs_for_date(day: date, operator: Optional[str] = None) -> List[ProductionLog]:
    return logs_in_range(day, day, operator=operator)


def all_logs(operator: Optional[str] = None) -> List[ProductionLog]:
    q = ProductionLog.query
    if operator:
        q = q.filter(ProductionLog.operator_name == operator)
    return q.order_by(ProductionLog.timestamp.desc()).all()


def _normalize_timestamp(value) -> datetime:
    if value in (None, ""):
        return plant_now(_tz())
    ts = parse_datetime(value)
    if ts is None:
        raise ValueError(f"Fecha/hora no válida: {value}")
    return to_plant_naive(ts, _tz())


def _clean_log_fields(data: dict) -> dict:
    out = {}

    if "operator_name" in data:
        out["operator_name"] = str(data["operator_name"] or "").strip()
        if not out["operator_name"]:
            raise ValueError("Falta el operario.")

    if "sector" in data:
        out["sector"] = str(data["sector"] or "").strip()
        if out["sector"] not in Sector.values():
            raise ValueError(f"Sector no válido: {out['sector']}")

    for key in ("model", "operation"):
        if key in data:
            out[key] = str(data[key] or "").strip()
            if not out[key]:
                raise ValueError("Complete modelo y operación.")

    if "quantity" in data:
        qty = parse_quantity(data["quantity"])
        if qty is None or qty <= 0:
            raise ValueError("La cantidad debe ser un entero positivo.")
        out["quantity"] = qty

    if "timestamp" in data:
        out["timestamp"] = _normalize_timestamp(data["timestamp"])

    for key in ("order_number", "comments", "start_time", "end_time"):
        if key in data:
            out[key] = str(data[key] or "").strip() or None

    return out


def register_log(
    operator_name: str,
    sector: str,
    model: str,
    operation: str,
    quantity,
    timestamp=None,
    order_number: Optional[str] = None,
    comments: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> ProductionLog:
    """
    Alta de un registro. Los puntos se calculan contra la matriz vigente;
    combinación sin regla se guarda con 0 puntos (trabajo sin valor).
    """
    fields = _clean_log_fields({
        "operator_name": operator_name,
        "sector": sector,
        "model": model,
        "operation": operation,
        "quantity": quantity,
        "timestamp": timestamp,
        "order_number": order_number,
        "comments": comments,
        "start_time": start_time,
        "end_time": end_time,
    })

    points = compute_points(
        current_rules(), fields["sector"], fields["model"], fields["operation"], fields["quantity"]
    )

    log = ProductionLog(total_points=points, **fields)
    db.session.add(log)
    db.session.commit()

    if points == 0:
        logger.info(
            f"Registro sin valor en matriz id={log.id} {log.sector}/{log.model}/{log.operation}"
        )
    return log


def update_log(log_id: int, **data) -> ProductionLog:
    log = db.session.get(ProductionLog, log_id)
    if log is None:
        raise LookupError(f"Registro no existe: {log_id}")

    fields = _clean_log_fields({k: v for k, v in data.items() if k in LOG_FIELDS})
    for key, value in fields.items():
        setattr(log, key, value)

    if any(k in fields for k in PRICING_FIELDS):
        log.total_points = compute_points(
            current_rules(), log.sector, log.model, log.operation, log.quantity
        )

    db.session.commit()
    logger.info(f"Registro actualizado id={log.id} puntos={log.total_points}")
    return log


def delete_log(log_id: int) -> None:
    log = db.session.get(ProductionLog, log_id)
    if log is None:
        raise LookupError(f"Registro no existe: {log_id}")
    db.session.delete(log)
    db.session.commit()


def clear_logs() -> int:
    n = ProductionLog.query.delete(synchronize_session=False)
    db.session.commit()
    logger.info(f"Historial eliminado: {n} registros")
    return n

