# app/services/legacy_import.py

from __future__ import annotations

from typing import Any, Dict, List

from flask import current_app

from app.extensions import db
from app.models import NewsItem, PointRule, ProductionLog, Sector
from app.services.catalogs import CATALOGS
from app.services.repository import matrix_changed, set_productivity_target
from app.utils.dates import parse_datetime, plant_now, to_plant_naive
from app.utils.logging import get_logger
from app.utils.numbers import parse_decimal

logger = get_logger("legacy_import")

BATCH_SIZE = 400


def _tz() -> str:
    return current_app.config.get("PLANT_TIMEZONE", "UTC")


def _bulk_insert(model, rows: List[dict]) -> None:
    if not rows:
        return
    db.session.bulk_insert_mappings(model, rows)
    db.session.commit()


def import_matrix_rows(rows: List[dict]) -> Dict[str, int]:
    """
    Alta/actualización de reglas por (sector, modelo, operación).
    Una sola invalidación de la matriz al final.
    """
    existing = {(r.sector, r.model, r.operation): r for r in PointRule.query.all()}
    created = updated = skipped = 0

    for row in rows:
        ppu = parse_decimal(row.get("points_per_unit"), default=None)
        if row.get("sector") not in Sector.values() or ppu is None or ppu < 0:
            skipped += 1
            continue
        if not row.get("model") or not row.get("operation"):
            skipped += 1
            continue

        key = (row["sector"], row["model"], row["operation"])
        rule = existing.get(key)
        if rule is None:
            rule = PointRule(sector=key[0], model=key[1], operation=key[2], points_per_unit=ppu)
            db.session.add(rule)
            existing[key] = rule
            created += 1
        elif parse_decimal(rule.points_per_unit) != ppu:
            rule.points_per_unit = ppu
            updated += 1

    matrix_changed()
    logger.info(f"Matriz importada: nuevas={created} actualizadas={updated} omitidas={skipped}")
    return {"created": created, "updated": updated, "skipped": skipped}


def _import_lists(lists: Dict[str, List[str]]) -> Dict[str, int]:
    counts = {}
    for kind, names in lists.items():
        model = CATALOGS[kind]
        have = {row.name for row in model.query.all()}
        new = [{"name": n} for n in names if n not in have]
        _bulk_insert(model, new)
        counts[kind] = len(new)
    return counts


def _import_logs(rows: List[dict]) -> Dict[str, int]:
    """
    Se conservan los puntos históricos tal como estaban guardados;
    para revalorizar contra la matriz actual está el recalculo masivo.
    """
    imported = skipped = 0
    buf: List[dict] = []

    for r in rows:
        ts = parse_datetime(r.get("timestamp"))
        qty = r.get("quantity")
        if ts is None or qty is None or qty <= 0 or not r.get("model") or not r.get("operation"):
            skipped += 1
            continue
        # el sistema anterior guardaba ISO en UTC
        ts = to_plant_naive(ts, _tz())

        buf.append({
            "timestamp": ts,
            "operator_name": r["operator_name"],
            "sector": r["sector"],
            "model": r["model"],
            "operation": r["operation"],
            "quantity": qty,
            "total_points": r["total_points"],
            "order_number": r.get("order_number"),
            "comments": r.get("comments"),
            "start_time": r.get("start_time"),
            "end_time": r.get("end_time"),
        })
        imported += 1

        if len(buf) >= BATCH_SIZE:
            _bulk_insert(ProductionLog, buf)
            buf.clear()
    _bulk_insert(ProductionLog, buf)

    return {"imported": imported, "skipped": skipped}


def _import_news(rows: List[dict]) -> int:
    buf = []
    for r in rows:
        expires = parse_datetime(r.get("expires_at"))
        if not r.get("title") or expires is None:
            continue
        expires = to_plant_naive(expires, _tz())
        created = parse_datetime(r.get("created_at"))
        buf.append({
            "title": r["title"],
            "content": r.get("content") or "",
            "expires_at": expires,
            "created_at": to_plant_naive(created, _tz()) if created else plant_now(_tz()),
            "priority": r.get("priority") if r.get("priority") in ("normal", "high") else "normal",
        })
    _bulk_insert(NewsItem, buf)
    return len(buf)


def import_bundle(bundle: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migración única del export del sistema anterior.
    """
    result: Dict[str, Any] = {}
    result["catalogs"] = _import_lists(bundle.get("lists") or {})
    result["rules"] = import_matrix_rows(bundle.get("rules") or [])
    result["logs"] = _import_logs(bundle.get("logs") or [])
    result["news"] = _import_news(bundle.get("news") or [])

    target = bundle.get("target")
    if target:
        set_productivity_target(target)
    result["target"] = target

    logger.info(f"Migración completa: {result}")
    return result
