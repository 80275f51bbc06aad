# tests/test_legacy_export.py

import json
from datetime import datetime
from decimal import Decimal

from app.models import NewsItem, Operator, ProductionLog
from app.parsers.legacy_export import LegacyExportParser
from app.services import repository
from app.services.legacy_import import import_bundle

EXPORT = {
    "production_logs": {
        "a1": {
            "timestamp": "2024-01-10T12:00:00.000Z", "operatorName": "Juan Pérez", "sector": "Costura",
            "model": "Modelo-X", "operation": "Costura Recta", "quantity": 50, "totalPoints": 500,
            "orderNumber": "OP-9",
        },
        # claves del esquema viejo
        "a2": {
            "date": "2024-01-11T12:00:00.000Z", "operator": "Ana Martínez", "sector": "COSTURA",
            "model": "Modelo-X", "operation": "Remalle", "quantity": 5, "points": 40,
        },
        "a3": {"timestamp": "2024-01-11T12:00:00Z", "operatorName": "X", "sector": "Costura",
               "model": "", "operation": "Remalle", "quantity": 5, "totalPoints": 40},
    },
    "points_matrix": [
        {"sector": "Costura", "model": "Modelo-X", "operation": "Costura Recta", "pointsPerUnit": 10},
    ],
    "app_config": {
        "lists": {"operators": ["Juan Pérez", "Ana Martínez", "Juan Pérez"], "models": ["Modelo-X"]},
        "targets": {"dailyTarget": 500},
    },
    "news": [
        {"title": "Aviso", "content": "Hola", "createdAt": "2024-01-01T00:00:00Z",
         "expiresAt": "2099-01-01T00:00:00Z", "priority": "high"},
    ],
}


def _write(tmp_path, data):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_sniff_counts_collections(tmp_path):
    meta = LegacyExportParser().sniff(_write(tmp_path, EXPORT))
    assert meta["errors"] == []
    assert meta["counts"]["production_logs"] == 3
    assert meta["counts"]["points_matrix"] == 1


def test_sniff_rejects_unknown_json(tmp_path):
    meta = LegacyExportParser().sniff(_write(tmp_path, {"foo": []}))
    assert meta["errors"]


def test_parse_maps_old_keys(tmp_path):
    bundle = LegacyExportParser().parse(_write(tmp_path, EXPORT))

    old = [r for r in bundle["logs"] if r["operator_name"] == "Ana Martínez"][0]
    assert old["timestamp"] == "2024-01-11T12:00:00.000Z"
    assert old["sector"] == "Costura"
    assert old["total_points"] == Decimal("40")

    assert bundle["lists"]["operators"] == ["Juan Pérez", "Ana Martínez"]
    assert bundle["lists"]["operations"] == []
    assert bundle["target"] == 500.0


def test_import_bundle(tmp_path, db):
    bundle = LegacyExportParser().parse(_write(tmp_path, EXPORT))
    result = import_bundle(bundle)

    assert result["logs"] == {"imported": 2, "skipped": 1}
    assert result["rules"]["created"] == 1
    assert result["catalogs"]["operators"] == 2

    # 12:00 UTC -> 09:00 en planta
    log = ProductionLog.query.filter_by(operator_name="Juan Pérez").one()
    assert log.timestamp == datetime(2024, 1, 10, 9, 0)
    assert log.total_points == Decimal("500")
    assert log.order_number == "OP-9"

    assert Operator.query.count() == 2
    assert NewsItem.query.one().priority == "high"
    assert repository.get_productivity_target() == 500.0
