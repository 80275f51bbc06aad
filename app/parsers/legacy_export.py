# app/parsers/legacy_export.py

from __future__ import annotations

import json
from typing import Any, Dict, List

from app.parsers.base import BaseParser
from app.parsers.normalization import (
    legacy_lists,
    legacy_log_to_row,
    legacy_rule_to_row,
    legacy_target,
)
from app.utils.logging import get_logger

logger = get_logger("parser_legacy_export")

LOGS_COL = "production_logs"
CONFIG_COL = "app_config"
MATRIX_COL = "points_matrix"
NEWS_COL = "news"


def _as_docs(value) -> List[Dict[str, Any]]:
    """
    Colección exportada como lista de documentos o como {id: documento}.
    """
    if isinstance(value, list):
        return [d for d in value if isinstance(d, dict)]
    if isinstance(value, dict):
        out = []
        for doc_id, doc in value.items():
            if isinstance(doc, dict):
                out.append({"id": doc_id, **doc})
        return out
    return []


def _as_config(value) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {d.get("id"): d for d in _as_docs(value) if d.get("id")}


class LegacyExportParser(BaseParser):
    """
    Export JSON de la base documental anterior:
      { production_logs, app_config, points_matrix, news }
    parse() devuelve todo ya en el esquema actual (una sola vez: la app
    no vuelve a leer las claves viejas).
    """

    def _load(self, path: str) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def sniff(self, path: str) -> Dict:
        meta: Dict[str, Any] = {"errors": [], "warnings": []}

        try:
            data = self._load(path)
        except (OSError, ValueError) as e:
            meta["errors"].append(f"Export: no se pudo leer el JSON: {e}")
            return meta

        if not isinstance(data, dict):
            meta["errors"].append("Export: se esperaba un objeto con colecciones.")
            return meta

        known = [c for c in (LOGS_COL, CONFIG_COL, MATRIX_COL, NEWS_COL) if c in data]
        meta["collections"] = known
        if not known:
            meta["errors"].append("Export: no contiene colecciones conocidas.")
            return meta

        meta["counts"] = {c: len(_as_docs(data[c])) for c in (LOGS_COL, MATRIX_COL, NEWS_COL) if c in data}
        if LOGS_COL not in data:
            meta["warnings"].append("Export: no trae registros de producción.")
        if MATRIX_COL not in data:
            meta["warnings"].append("Export: no trae matriz de puntos.")

        return meta

    def parse(self, path: str) -> Dict[str, Any]:
        data = self._load(path)
        config = _as_config(data.get(CONFIG_COL))

        logs = [legacy_log_to_row(d) for d in _as_docs(data.get(LOGS_COL))]
        rules = [legacy_rule_to_row(d) for d in _as_docs(data.get(MATRIX_COL))]

        news = []
        for d in _as_docs(data.get(NEWS_COL)):
            news.append({
                "title": d.get("title") or "",
                "content": d.get("content") or "",
                "created_at": d.get("createdAt"),
                "expires_at": d.get("expiresAt"),
                "priority": d.get("priority") or "normal",
            })

        bundle = {
            "logs": logs,
            "rules": rules,
            "lists": legacy_lists(config),
            "target": legacy_target(config),
            "news": news,
        }
        logger.info(f"Export leído: logs={len(logs)} reglas={len(rules)} noticias={len(news)}")
        return bundle
