# tests/test_recalc.py

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from app.models import ProductionLog, RecalcRun
from app.services import repository
from app.services.recalc import recalculate_all, recalculate_stored_logs


def _rule(sector, model, operation, ppu):
    return SimpleNamespace(sector=sector, model=model, operation=operation, points_per_unit=Decimal(str(ppu)))


def _log(model, operation, qty, points, sector="Costura"):
    return SimpleNamespace(sector=sector, model=model, operation=operation, quantity=qty,
                           total_points=Decimal(str(points)))


def test_recalculate_updates_only_changed_logs():
    rules = [_rule("Costura", "Modelo-X", "Costura Recta", 12)]
    logs = [
        _log("Modelo-X", "Costura Recta", 10, 100),  # 10 pts/u viejo -> 120
        _log("Modelo-X", "Costura Recta", 5, 60),    # ya correcto
        _log("Modelo-Y", "Remalle", 4, 32),          # sin regla ahora -> 0
    ]

    assert recalculate_all(logs, rules) == 2
    assert logs[0].total_points == Decimal("120")
    assert logs[1].total_points == Decimal("60")
    assert logs[2].total_points == 0


def test_recalculate_twice_is_idempotent():
    rules = [_rule("Costura", "Modelo-X", "Costura Recta", 12)]
    logs = [_log("Modelo-X", "Costura Recta", 10, 100)]

    assert recalculate_all(logs, rules) == 1
    assert recalculate_all(logs, rules) == 0


def test_differences_within_epsilon_are_ignored():
    rules = [_rule("Costura", "Modelo-X", "Costura Recta", "3.333")]
    logs = [_log("Modelo-X", "Costura Recta", 3, "10")]  # 9.999

    assert recalculate_all(logs, rules, epsilon="0.01") == 0
    assert logs[0].total_points == Decimal("10")


def test_batches_and_failed_batch_not_counted():
    rules = [_rule("Costura", "Modelo-X", "Costura Recta", 1)]
    logs = [_log("Modelo-X", "Costura Recta", 1, 0) for _ in range(5)]
    seen = []

    def apply_batch(batch):
        seen.append(len(batch))
        return len(seen) != 2  # falla el segundo lote

    assert recalculate_all(logs, rules, batch_size=2, apply_batch=apply_batch) == 3
    assert seen == [2, 2, 1]


def test_recalculate_stored_logs_records_run(db):
    rule = repository.add_rule("Costura", "Modelo-X", "Costura Recta", 10)
    log = repository.register_log("Juan Pérez", "Costura", "Modelo-X", "Costura Recta", 5,
                                  timestamp="2024-01-10T09:00:00")
    assert log.total_points == Decimal("50")

    repository.update_rule(rule.id, points_per_unit=12)
    run = recalculate_stored_logs(batch_size=10)

    assert run.status == "DONE"
    assert run.scanned == 1
    assert run.modified == 1
    assert db.session.get(ProductionLog, log.id).total_points == Decimal("60")

    again = recalculate_stored_logs()
    assert again.modified == 0
    assert RecalcRun.query.count() == 2


def test_failed_batch_leaves_logs_untouched():
    rules = [_rule("Costura", "Modelo-X", "Costura Recta", 12)]
    logs = [_log("Modelo-X", "Costura Recta", 10, 100) for _ in range(3)]
    received = []

    def apply_batch(batch):
        received.append([new for _, new in batch])
        return len(received) == 1

    assert recalculate_all(logs, rules, batch_size=2, apply_batch=apply_batch) == 2
    assert received == [[Decimal("120"), Decimal("120")], [Decimal("120")]]
    assert [l.total_points for l in logs] == [Decimal("120"), Decimal("120"), Decimal("100")]

    # el pendiente se toma en la próxima corrida
    assert recalculate_all(logs, rules) == 1


def test_stored_recalculation_updates_across_batches(db):
    rule = repository.add_rule("Costura", "Modelo-X", "Remalle", 8)
    ids = [
        repository.register_log("Juan Pérez", "Costura", "Modelo-X", "Remalle", q).id
        for q in (1, 2, 3, 4, 5)
    ]
    repository.update_rule(rule.id, points_per_unit=10)

    run = recalculate_stored_logs(batch_size=2)

    assert run.status == "DONE"
    assert run.modified == 5
    assert run.failed_batches == 0
    assert [db.session.get(ProductionLog, i).total_points for i in ids] == [
        Decimal("10"), Decimal("20"), Decimal("30"), Decimal("40"), Decimal("50"),
    ]
