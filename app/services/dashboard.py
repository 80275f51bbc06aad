# app/services/dashboard.py

from decimal import Decimal
from typing import Iterable, Dict, Any, Optional

from app.services.points import is_unrated
from app.services.productivity import aggregate_by_day
from app.utils.numbers import parse_decimal


def compute_dashboard(logs: Iterable, target, tz_name: Optional[str] = None) -> Dict[str, Any]:
    """
    logs: registros ya filtrados por ventana / operario.

    Devuelve totales, ranking de operarios por puntos, unidades por sector
    y eficiencia bruta de la ventana:
        puntos / (operarios activos * días con producción * meta)
    """
    logs = list(logs)

    total_points = Decimal("0")
    total_units = 0
    unrated_entries = 0

    by_operator: Dict[str, Decimal] = {}
    units_by_sector: Dict[str, int] = {}

    for log in logs:
        pts = parse_decimal(log.total_points)
        qty = int(log.quantity or 0)

        total_points += pts
        total_units += qty
        if is_unrated(pts, qty):
            unrated_entries += 1

        by_operator[log.operator_name] = by_operator.get(log.operator_name, Decimal("0")) + pts
        units_by_sector[log.sector] = units_by_sector.get(log.sector, 0) + qty

    ranking = sorted(by_operator.items(), key=lambda kv: kv[1], reverse=True)
    days = aggregate_by_day(logs, tz_name=tz_name)

    t = parse_decimal(target)
    capacity = Decimal(len(by_operator)) * Decimal(len(days)) * t
    efficiency = float(total_points / capacity * 100) if capacity > 0 else 0.0

    return {
        "total_points": float(total_points),
        "total_units": total_units,
        "entries": len(logs),
        "unrated_entries": unrated_entries,
        "active_operators": len(by_operator),
        "days": len(days),
        "top_operator": (
            {"name": ranking[0][0], "points": float(ranking[0][1])} if ranking else None
        ),
        "ranking": [{"name": n, "points": float(p)} for n, p in ranking[:10]],
        "units_by_sector": [
            {"name": s, "value": v}
            for s, v in sorted(units_by_sector.items(), key=lambda kv: kv[1], reverse=True)
        ],
        "efficiency": efficiency,
    }
