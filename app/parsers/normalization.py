# app/parsers/normalization.py

import re
import unicodedata
from typing import Any, Dict, List, Optional

from app.models import Sector
from app.utils.numbers import parse_decimal, parse_quantity


def norm_header(value) -> str:
    """
    Normaliza encabezados para comparar:
    - trim, upper
    - sin tildes
    - colapsa espacios
    """
    if value is None:
        return ""
    s = str(value).strip()
    s = unicodedata.normalize("NFD", s)
    s = "".join(c for c in s if unicodedata.category(c) != "Mn")
    s = re.sub(r"\s+", " ", s)
    return s.upper()


def normalize_name(value) -> str:
    """
    Nombres de catálogo: trim + espacios simples. Respeta mayúsculas y tildes
    (la matriz compara por igualdad exacta).
    """
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value).strip())


def normalize_sector(value) -> Optional[str]:
    """
    'corte', ' CORTE ' -> 'Corte'. None si no es un sector conocido.
    """
    key = norm_header(value)
    for s in Sector.values():
        if norm_header(s) == key:
            return s
    return None


def pick_first_existing(row: Dict, keys: List[str], default=None):
    for k in keys:
        if k in row and row[k] not in (None, ""):
            return row[k]
    return default


def map_columns_by_synonyms(columns: List[str], synonyms: Dict[str, List[str]]) -> Dict[str, Optional[str]]:
    """
    columns: lista columnas del excel (tal como vienen)
    synonyms: {canonical: [opcion1, opcion2, ...]}
    Retorna: {canonical: columna_real_encontrada_o_None}

    Matching exacto por norm_header; después "contiene".
    """
    rev = {norm_header(c): c for c in columns if c not in (None, "")}

    mapped: Dict[str, Optional[str]] = {}
    for canon, opts in synonyms.items():
        found = None

        for o in opts:
            o_up = norm_header(o)
            if o_up in rev:
                found = rev[o_up]
                break

        if not found:
            for o in opts:
                o_up = norm_header(o)
                for cu, orig in rev.items():
                    if o_up and o_up in cu:
                        found = orig
                        break
                if found:
                    break

        mapped[canon] = found

    return mapped


# ----------------------------
# documentos del sistema anterior
# ----------------------------
def legacy_log_to_row(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Un documento de production_logs -> campos de ProductionLog.

    Claves viejas aceptadas una sola vez, acá:
      operatorName | operator
      totalPoints  | points
      timestamp    | date
    """
    return {
        "legacy_id": str(doc.get("id") or ""),
        "timestamp": pick_first_existing(doc, ["timestamp", "date"]),
        "operator_name": normalize_name(
            pick_first_existing(doc, ["operatorName", "operator"], default="Desconocido")
        ),
        "sector": normalize_sector(doc.get("sector")) or normalize_name(doc.get("sector")),
        "model": normalize_name(doc.get("model")),
        "operation": normalize_name(doc.get("operation")),
        "quantity": parse_quantity(doc.get("quantity")),
        "total_points": parse_decimal(pick_first_existing(doc, ["totalPoints", "points"], default=0)),
        "order_number": normalize_name(doc.get("orderNumber")) or None,
        "comments": (doc.get("comments") or "").strip() or None,
        "start_time": (doc.get("startTime") or "").strip() or None,
        "end_time": (doc.get("endTime") or "").strip() or None,
    }


def legacy_rule_to_row(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "sector": normalize_sector(doc.get("sector")) or normalize_name(doc.get("sector")),
        "model": normalize_name(doc.get("model")),
        "operation": normalize_name(doc.get("operation")),
        "points_per_unit": parse_decimal(doc.get("pointsPerUnit"), default=None),
    }


def legacy_target(config: Dict[str, Any]) -> Optional[float]:
    """
    Meta diaria: documento 'targets' o 'productivity_target', campo value | dailyTarget.
    """
    for doc_id in ("targets", "productivity_target"):
        doc = config.get(doc_id)
        if isinstance(doc, dict):
            value = parse_decimal(pick_first_existing(doc, ["value", "dailyTarget"]), default=None)
            if value is not None and value > 0:
                return float(value)
    return None


def legacy_lists(config: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Listas de catálogo: documento 'lists' con las tres claves,
    o un documento por lista con campo 'list'.
    """
    out: Dict[str, List[str]] = {}
    combined = config.get("lists") if isinstance(config.get("lists"), dict) else None

    for kind in ("operators", "models", "operations"):
        if combined is not None:
            items = combined.get(kind) or []
        else:
            doc = config.get(kind)
            items = (doc or {}).get("list") or [] if isinstance(doc, dict) else []
        seen = []
        for item in items:
            name = normalize_name(item)
            if name and name not in seen:
                seen.append(name)
        out[kind] = seen

    return out
