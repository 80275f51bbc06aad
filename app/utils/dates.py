# app/utils/dates.py

from datetime import datetime, date, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo


def parse_datetime(value) -> Optional[datetime]:
    """
    Convierte strings ISO / celdas / fechas a datetime cuando sea posible.
    Si no puede, devuelve None.
    Acepta el sufijo "Z" de los timestamps exportados por el sistema anterior.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    s = str(value).strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass

    formats = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
        "%d/%m/%Y %H:%M",
        "%d/%m/%Y",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    return None


def parse_day(value) -> Optional[date]:
    """
    "2024-01-10" -> date(2024, 1, 10). None si no es una fecha válida.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    dt = parse_datetime(value)
    return dt.date() if dt else None


def day_key(ts: datetime, tz_name: Optional[str] = None) -> date:
    """
    Día calendario de un registro.
    - timestamps naive: ya están en hora de planta, se toma la fecha tal cual
    - timestamps con zona: se convierten a la zona de planta antes de cortar
    """
    if ts.tzinfo is not None and tz_name:
        ts = ts.astimezone(ZoneInfo(tz_name))
    return ts.date()


def to_plant_naive(ts: datetime, tz_name: str) -> datetime:
    """
    Hora de planta sin tzinfo. Los naive se asumen ya en hora de planta.
    """
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def plant_now(tz_name: str) -> datetime:
    """
    Hora actual de planta, sin tzinfo (así se guarda en la base).
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """
    Primer y último día (inclusive) del mes.
    """
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end - timedelta(days=1)


def parse_month(value: str) -> Optional[Tuple[int, int]]:
    """
    "2024-01" -> (2024, 1)
    """
    try:
        y, m = str(value or "").strip().split("-", 1)
        year, month = int(y), int(m)
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return year, month


def window_from_args(args, today: date, default_days: int = 7) -> Tuple[date, date]:
    """
    Ventana de filtros ?start=YYYY-MM-DD&end=YYYY-MM-DD.
    Por defecto: últimos `default_days` días hasta hoy.
    """
    end = parse_day(args.get("end")) or today
    start = parse_day(args.get("start")) or (end - timedelta(days=default_days))
    if start > end:
        start, end = end, start
    return start, end
