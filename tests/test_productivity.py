# tests/test_productivity.py

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.points import compute_points
from app.services.productivity import (
    DayAggregate,
    aggregate_by_day,
    compute_averages,
    filter_logs,
    monthly_report,
    recent_history,
)

TZ = "America/Argentina/Buenos_Aires"


def _log(ts, points, qty=10, operator="Juan Pérez", order=None):
    return SimpleNamespace(
        timestamp=ts, total_points=Decimal(str(points)), quantity=qty,
        operator_name=operator, order_number=order,
    )


def test_model_x_gross_vs_pure():
    """
    Meta 500.
    Día 1: 50 u Costura Recta (10 pts/u) = 500 -> puro, 100%.
    Día 2: 25 u Costura Recta = 250 + 10 u sin valor -> mixto, 50%.
    """
    logs = [
        _log(datetime(2024, 1, 10, 9, 0), 500, qty=50),
        _log(datetime(2024, 1, 11, 9, 0), 250, qty=25),
        _log(datetime(2024, 1, 11, 15, 0), 0, qty=10),
    ]
    days = aggregate_by_day(logs)

    assert [d.day for d in days] == [date(2024, 1, 10), date(2024, 1, 11)]
    assert days[0].is_pure is True
    assert days[1].has_unrated is True
    assert days[1].is_pure is False

    avgs = compute_averages(days, 500)
    assert avgs["avg_general"] == pytest.approx(75.0)
    assert avgs["avg_productive"] == pytest.approx(100.0)


def test_day_groups_by_calendar_date_not_order():
    logs = [
        _log(datetime(2024, 1, 10, 7, 0), 100, order="OP-1"),
        _log(datetime(2024, 1, 10, 23, 59), 200, order="OP-2"),
    ]
    days = aggregate_by_day(logs)
    assert len(days) == 1
    assert days[0].points == Decimal("300")
    assert days[0].entries == 2


def test_empty_history_gives_zero():
    assert compute_averages([], 500) == {"avg_general": 0.0, "avg_productive": 0.0}


def test_only_mixed_days_pure_average_is_zero():
    logs = [_log(datetime(2024, 1, 10, 9), 300), _log(datetime(2024, 1, 10, 10), 0)]
    avgs = compute_averages(aggregate_by_day(logs), 600)
    assert avgs["avg_general"] == pytest.approx(50.0)
    assert avgs["avg_productive"] == 0.0


def test_zero_point_day_counts_in_gross_only():
    logs = [_log(datetime(2024, 1, 10, 9), 400), _log(datetime(2024, 1, 12, 9), 0)]
    avgs = compute_averages(aggregate_by_day(logs), 400)
    assert avgs["avg_general"] == pytest.approx(50.0)
    assert avgs["avg_productive"] == pytest.approx(100.0)


@pytest.mark.parametrize("points, expected", [(500, 100.0), (750, 150.0), (250, 50.0)])
def test_percentages_scale_with_target_and_are_not_capped(points, expected):
    days = aggregate_by_day([_log(datetime(2024, 1, 10, 9), points)])
    assert compute_averages(days, 500)["avg_general"] == pytest.approx(expected)


def test_non_positive_target_gives_zero():
    days = aggregate_by_day([_log(datetime(2024, 1, 10, 9), 500)])
    assert compute_averages(days, 0) == {"avg_general": 0.0, "avg_productive": 0.0}


def test_aware_timestamps_use_plant_day():
    # 02:00 UTC del 10/01 es todavía 09/01 en planta (UTC-3)
    ts = datetime(2024, 1, 10, 2, 0, tzinfo=timezone.utc)
    days = aggregate_by_day([_log(ts, 100)], tz_name=TZ)
    assert days[0].day == date(2024, 1, 9)


def test_filter_logs_by_operator_and_window():
    logs = [
        _log(datetime(2024, 1, 9, 9), 100, operator="Ana Martínez"),
        _log(datetime(2024, 1, 10, 9), 100),
        _log(datetime(2024, 1, 12, 9), 100),
    ]
    out = filter_logs(logs, operator="Juan Pérez", start=date(2024, 1, 10), end=date(2024, 1, 11))
    assert len(out) == 1
    assert out[0].timestamp.day == 10


def test_monthly_report_scopes_to_month():
    logs = [
        _log(datetime(2024, 1, 31, 9), 500),
        _log(datetime(2024, 2, 1, 9), 250),
        _log(datetime(2024, 2, 2, 9), 500),
    ]
    report = monthly_report(logs, "Juan Pérez", 2024, 2, 500)

    assert report["month"] == "2024-02"
    assert report["days_worked"] == 2
    assert report["pure_days"] == 2
    assert report["total_points"] == pytest.approx(750.0)
    assert report["avg_general"] == pytest.approx(75.0)
    assert [d["day"] for d in report["days"]] == ["2024-02-01", "2024-02-02"]


def test_recent_history_takes_latest_days_descending():
    logs = [_log(datetime(2024, 1, d, 9), 100 * d) for d in range(1, 21)]
    report = recent_history(logs, "Juan Pérez", 1000, days=15)

    assert report["days_worked"] == 15
    assert report["days"][0]["day"] == "2024-01-20"
    assert report["days"][-1]["day"] == "2024-01-06"


def test_laser_cut_scenario():
    """
    Corte / Model-X / Laser Cut a 5 pts/u, meta 500.
    Día 1: 100 u = 500 -> 100%. Día 2: 50 u = 250 + una carga sin valor -> mixto.
    """
    rules = [SimpleNamespace(sector="Corte", model="Model-X", operation="Laser Cut", points_per_unit=5)]

    def priced(ts, qty, operation="Laser Cut"):
        return _log(ts, compute_points(rules, "Corte", "Model-X", operation, qty), qty=qty)

    logs = [
        priced(datetime(2024, 1, 10, 9), 100),
        priced(datetime(2024, 1, 11, 9), 50),
        priced(datetime(2024, 1, 11, 11), 20, operation="Deburr"),
    ]
    avgs = compute_averages(aggregate_by_day(logs), 500)

    assert avgs["avg_general"] == pytest.approx(75.0)
    assert avgs["avg_productive"] == pytest.approx(100.0)


def test_aggregation_is_idempotent():
    logs = [
        _log(datetime(2024, 1, 11, 9), 250),
        _log(datetime(2024, 1, 10, 9), 500),
        _log(datetime(2024, 1, 11, 15), 0),
    ]
    assert aggregate_by_day(logs) == aggregate_by_day(logs)
    assert aggregate_by_day(logs, descending=True, limit=1) == aggregate_by_day(logs, descending=True, limit=1)


@pytest.mark.parametrize("points, expected", [(24960, 100.0), (37440, 150.0)])
def test_default_target_scaling(points, expected):
    days = aggregate_by_day([_log(datetime(2024, 1, 10, 9), points)])
    avgs = compute_averages(days, 24960)
    assert avgs["avg_general"] == pytest.approx(expected)
    assert avgs["avg_productive"] == pytest.approx(expected)


def test_averages_accept_float_points():
    days = [
        DayAggregate(day=date(2024, 1, 10), points=500.0, has_unrated=False),
        DayAggregate(day=date(2024, 1, 11), points=250.0, has_unrated=True),
    ]
    avgs = compute_averages(days, 500)
    assert avgs["avg_general"] == pytest.approx(75.0)
    assert avgs["avg_productive"] == pytest.approx(100.0)


def test_negative_limit_returns_no_days():
    logs = [_log(datetime(2024, 1, d, 9), 100) for d in range(1, 6)]
    assert aggregate_by_day(logs, descending=True, limit=-3) == []
    assert recent_history(logs, "Juan Pérez", 500, days=0)["days"] == []
