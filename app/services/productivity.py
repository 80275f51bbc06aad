# app/services/productivity.py

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Any

from app.services.points import is_unrated
from app.utils.dates import day_key, month_bounds, parse_datetime
from app.utils.numbers import parse_decimal


@dataclass
class DayAggregate:
    day: date
    points: Decimal
    has_unrated: bool
    quantity: int = 0
    entries: int = 0

    @property
    def is_pure(self) -> bool:
        """
        Día válido para liquidación: con puntos y sin trabajo sin valor.
        """
        return self.points > 0 and not self.has_unrated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "points": float(self.points),
            "has_unrated": self.has_unrated,
            "quantity": self.quantity,
            "entries": self.entries,
            "pure": self.is_pure,
        }


def _log_day(log, tz_name: Optional[str]) -> Optional[date]:
    ts = parse_datetime(log.timestamp)
    if ts is None:
        return None
    return day_key(ts, tz_name)


def filter_logs(
    logs: Iterable,
    operator: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    tz_name: Optional[str] = None,
) -> List:
    """
    Filtra por operario y ventana de días (ambos extremos inclusive).
    """
    out = []
    for log in logs:
        if operator and log.operator_name != operator:
            continue
        d = _log_day(log, tz_name)
        if d is None:
            continue
        if start and d < start:
            continue
        if end and d > end:
            continue
        out.append(log)
    return out


def aggregate_by_day(
    logs: Iterable,
    descending: bool = False,
    limit: Optional[int] = None,
    tz_name: Optional[str] = None,
) -> List[DayAggregate]:
    """
    Agrupa registros por día calendario del timestamp (ignora la hora).

    La clave es solo la fecha: ni el id ni el número de orden intervienen.
    Un día queda marcado has_unrated si alguno de sus registros tiene
    total_points == 0 con quantity > 0.
    Días sin registros no aparecen.

    descending=True + limit -> historial reciente (últimos N días con datos).
    """
    days: Dict[date, DayAggregate] = OrderedDict()

    for log in logs:
        d = _log_day(log, tz_name)
        if d is None:
            continue

        pts = parse_decimal(log.total_points)
        qty = int(log.quantity or 0)

        agg = days.get(d)
        if agg is None:
            agg = DayAggregate(day=d, points=Decimal("0"), has_unrated=False)
            days[d] = agg

        agg.points += pts
        agg.quantity += qty
        agg.entries += 1
        if is_unrated(pts, qty):
            agg.has_unrated = True

    result = sorted(days.values(), key=lambda a: a.day, reverse=descending)
    if limit is not None:
        # un límite negativo no debe recortar desde el final
        result = result[:max(limit, 0)]
    return result


def _pct_of_target(mean: Decimal, target) -> float:
    t = parse_decimal(target)
    if t <= 0:
        return 0.0
    return float(mean / t * 100)


def compute_averages(days: Iterable[DayAggregate], target) -> Dict[str, float]:
    """
    avg_general: promedio bruto sobre TODOS los días del conjunto.
    avg_productive: promedio puro, solo días con puntos y sin trabajo sin valor
                    (el que se usa para liquidación).
    Ambos como % de la meta diaria, sin tope (más de 100% es válido).
    """
    days = list(days)
    if not days:
        return {"avg_general": 0.0, "avg_productive": 0.0}

    total = sum((parse_decimal(d.points) for d in days), Decimal("0"))
    avg_general = _pct_of_target(total / len(days), target)

    pure = [d for d in days if d.is_pure]
    if pure:
        pure_total = sum((parse_decimal(d.points) for d in pure), Decimal("0"))
        avg_productive = _pct_of_target(pure_total / len(pure), target)
    else:
        avg_productive = 0.0

    return {"avg_general": avg_general, "avg_productive": avg_productive}


def _summary(days: List[DayAggregate], target) -> Dict[str, Any]:
    averages = compute_averages(days, target)
    return {
        "target": float(parse_decimal(target)),
        "days_worked": len(days),
        "pure_days": sum(1 for d in days if d.is_pure),
        "mixed_days": sum(1 for d in days if d.has_unrated),
        "total_points": float(sum((parse_decimal(d.points) for d in days), Decimal("0"))),
        "total_units": sum(d.quantity for d in days),
        "avg_general": averages["avg_general"],
        "avg_productive": averages["avg_productive"],
    }


def monthly_report(
    logs: Iterable,
    operator: str,
    year: int,
    month: int,
    target,
    tz_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Reporte mensual de un operario: días en orden cronológico + promedios.
    """
    start, end = month_bounds(year, month)
    scoped = filter_logs(logs, operator=operator, start=start, end=end, tz_name=tz_name)
    days = aggregate_by_day(scoped, tz_name=tz_name)

    report = _summary(days, target)
    report.update({
        "operator": operator,
        "month": f"{year:04d}-{month:02d}",
        "days": [d.to_dict() for d in days],
    })
    return report


def recent_history(
    logs: Iterable,
    operator: str,
    target,
    days: int = 15,
    tz_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Últimos N días con producción del operario, del más reciente al más viejo.
    """
    scoped = filter_logs(logs, operator=operator, tz_name=tz_name)
    window = aggregate_by_day(scoped, descending=True, limit=days, tz_name=tz_name)

    report = _summary(window, target)
    report.update({
        "operator": operator,
        "window": days,
        "days": [d.to_dict() for d in window],
    })
    return report
