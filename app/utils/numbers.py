# app/utils/numbers.py

import re
from decimal import Decimal, InvalidOperation
from typing import Optional


def parse_decimal(value, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    """
    Convierte '2,5', '2.5', ' 10 ', 12, 12.5 a Decimal.
    Formato con separador de miles: '1.234,5' -> 1234.5 y '1,234.5' -> 1234.5
    Si no se puede convertir, devuelve default.
    """
    if value is None:
        return default

    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return default

    s = str(value).strip()
    if s == "" or s.lower() in ("nan", "none", "null"):
        return default

    s = re.sub(r"[^\d,.\-]", "", s)
    if s in ("", "-"):
        return default

    if "," in s and "." in s:
        # el último separador es el decimal
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif s.count(",") == 1:
        s = s.replace(",", ".")
    elif s.count(".") > 1:
        s = s.replace(".", "")

    try:
        return Decimal(s)
    except InvalidOperation:
        return default


def parse_quantity(value) -> Optional[int]:
    """
    Cantidad entera. None si no es un entero (no redondea '2.5').
    """
    d = parse_decimal(value, default=None)
    if d is None or d != d.to_integral_value():
        return None
    return int(d)


def fmt_points(value, places: int = 2) -> str:
    """
    Formato es-AR para exportes: 1234.5 -> '1234,50'
    """
    return f"{float(value or 0):.{places}f}".replace(".", ",")
