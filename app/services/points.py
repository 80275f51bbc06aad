# app/services/points.py

from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from app.utils.numbers import parse_decimal


def find_rule(rules: Iterable, sector: str, model: str, operation: str) -> Optional[object]:
    """
    Busca la regla de la matriz para (sector, modelo, operación).

    Igualdad exacta, sin normalizar mayúsculas ni espacios.
    Devuelve la primera coincidencia o None (combinación sin valor).
    """
    for rule in rules:
        if rule.sector == sector and rule.model == model and rule.operation == operation:
            return rule
    return None


def index_rules(rules: Iterable) -> Dict[Tuple[str, str, str], object]:
    """
    (sector, modelo, operación) -> regla. Conserva la primera, igual que find_rule.
    """
    index: Dict[Tuple[str, str, str], object] = {}
    for rule in rules:
        index.setdefault((rule.sector, rule.model, rule.operation), rule)
    return index


def price(rule, quantity) -> Decimal:
    if rule is None:
        return Decimal("0")
    return parse_decimal(rule.points_per_unit) * parse_decimal(quantity)


def unit_value(rules: Iterable, sector: str, model: str, operation: str) -> Decimal:
    return price(find_rule(rules, sector, model, operation), 1)


def compute_points(rules: Iterable, sector: str, model: str, operation: str, quantity) -> Decimal:
    """
    puntos_por_unidad * cantidad, o 0 si no hay regla.
    No valida la cantidad: eso es responsabilidad de quien llama.
    """
    return price(find_rule(rules, sector, model, operation), quantity)


def is_unrated(total_points, quantity) -> bool:
    return parse_decimal(total_points) == 0 and parse_decimal(quantity) > 0
