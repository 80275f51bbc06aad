# app/services/recalc.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from app.extensions import db
from app.models import ProductionLog, PointRule, RecalcRun
from app.services.points import index_rules, price
from app.services.rules_cache import RuleSnapshot
from app.utils.logging import get_logger
from app.utils.numbers import parse_decimal

logger = get_logger("recalc")

BATCH_SIZE = 400
EPSILON = Decimal("0.01")


@dataclass
class _StoredLog:
    id: int
    sector: str
    model: str
    operation: str
    quantity: int
    total_points: Decimal


def recalculate_all(
    logs: Iterable,
    rules: Iterable,
    epsilon=EPSILON,
    batch_size: int = BATCH_SIZE,
    apply_batch: Optional[Callable[[List[Tuple[object, Decimal]]], bool]] = None,
) -> int:
    """
    Vuelve a valorizar cada registro contra la matriz ACTUAL.

    Un registro se actualiza si el valor nuevo difiere del guardado en más
    de epsilon. Los cambios se entregan a apply_batch como pares
    (registro, puntos_nuevos) en grupos de batch_size. Solo si apply_batch
    devuelve True se asignan los puntos y el grupo se cuenta
    (no hay rollback entre grupos).

    Retorna la cantidad de registros modificados. Correrlo dos veces
    seguidas sin cambios en la matriz da 0 la segunda vez.
    """
    index = index_rules(rules)
    eps = parse_decimal(epsilon)

    modified = 0
    batch: List[Tuple[object, Decimal]] = []

    def _flush() -> int:
        if not batch:
            return 0
        ok = True if apply_batch is None else apply_batch(list(batch))
        n = 0
        if ok:
            for log, new_points in batch:
                log.total_points = new_points
            n = len(batch)
        batch.clear()
        return n

    for log in logs:
        rule = index.get((log.sector, log.model, log.operation))
        new_points = price(rule, log.quantity)
        if abs(new_points - parse_decimal(log.total_points)) <= eps:
            continue

        batch.append((log, new_points))
        if len(batch) >= batch_size:
            modified += _flush()

    modified += _flush()
    return modified


def _commit_batch(batch: List[Tuple[object, Decimal]]) -> bool:
    try:
        db.session.bulk_update_mappings(
            ProductionLog,
            [{"id": log.id, "total_points": new_points} for log, new_points in batch],
        )
        db.session.commit()
        return True
    except Exception as e:
        db.session.rollback()
        logger.exception(f"Recalc batch failed size={len(batch)}: {e}")
        return False


def _stored_logs() -> List[_StoredLog]:
    # filas planas: los commits por lote no expiran nada que haya que recargar
    rows = (
        db.session.query(
            ProductionLog.id, ProductionLog.sector, ProductionLog.model,
            ProductionLog.operation, ProductionLog.quantity, ProductionLog.total_points,
        )
        .order_by(ProductionLog.id.asc())
        .all()
    )
    return [_StoredLog(*row) for row in rows]


def recalculate_stored_logs(batch_size: int = BATCH_SIZE, epsilon=EPSILON) -> RecalcRun:
    """
    Recalculo masivo sobre la base, con commit por lote.
    Deja registro de la corrida en RecalcRun.
    """
    run = RecalcRun(status="CREATED")
    db.session.add(run)
    db.session.commit()

    run.mark_running()
    db.session.commit()
    run_id = run.id

    failed = 0

    def _apply(batch: List[Tuple[object, Decimal]]) -> bool:
        nonlocal failed
        ok = _commit_batch(batch)
        if not ok:
            failed += 1
        return ok

    try:
        rules = [RuleSnapshot.from_rule(r) for r in PointRule.query.all()]
        logs = _stored_logs()

        modified = recalculate_all(
            logs, rules, epsilon=epsilon, batch_size=batch_size, apply_batch=_apply
        )

        run = db.session.get(RecalcRun, run_id)
        run.scanned = len(logs)
        run.modified = modified
        run.failed_batches = failed
        run.mark_done()
        db.session.commit()

        logger.info(
            f"Recalc run={run_id} scanned={len(logs)} modified={modified} failed_batches={failed}"
        )
        return run

    except Exception as e:
        db.session.rollback()
        run = db.session.get(RecalcRun, run_id)
        run.mark_failed(e)
        db.session.commit()
        logger.exception(f"Recalc run failed id={run_id}: {e}")
        return run
