# app/parsers/matrix_excel.py

from __future__ import annotations

from typing import Any, Dict, List

from openpyxl import load_workbook

from app.parsers.base import BaseParser
from app.parsers.normalization import (
    map_columns_by_synonyms,
    normalize_name,
    normalize_sector,
)
from app.utils.logging import get_logger
from app.utils.numbers import parse_decimal

logger = get_logger("parser_matrix_excel")


class PointsMatrixParser(BaseParser):
    """
    Matriz de puntos en Excel (la "hoja oculta" de la planilla original).
    Primera hoja, encabezado en fila 1: Sector | Modelo | Operación | Puntos.
    """

    SYNONYMS = {
        "sector": ["Sector", "Área", "Area"],
        "model": ["Modelo", "Model", "Producto"],
        "operation": ["Operación", "Operacion", "Operation", "Tarea"],
        "points_per_unit": ["Puntos por Unidad", "Pts/u", "Puntos", "Points", "Valor"],
    }

    REQUIRED = ("sector", "model", "operation", "points_per_unit")

    def _headers(self, ws) -> List[str]:
        header_values = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
        return [("" if c is None else str(c).strip()) for c in header_values]

    def sniff(self, path: str) -> Dict:
        meta: Dict[str, Any] = {"errors": [], "warnings": []}

        try:
            wb = load_workbook(filename=path, read_only=True, data_only=True)
        except Exception as e:
            meta["errors"].append(f"Matriz: no se pudo abrir el archivo (inválido o corrupto): {e}")
            return meta

        try:
            if not wb.worksheets:
                meta["errors"].append("Matriz: el archivo no contiene hojas.")
                return meta

            ws = wb.worksheets[0]
            meta["sheet_used"] = ws.title

            headers = self._headers(ws)
            mapped = map_columns_by_synonyms(headers, self.SYNONYMS)
            meta["mapped_columns"] = mapped

            for canon in self.REQUIRED:
                if not mapped.get(canon):
                    meta["errors"].append(f"Matriz: no se encontró columna '{canon}'.")
        finally:
            wb.close()

        return meta

    def parse(self, path: str) -> List[dict]:
        """
        Filas válidas como dicts {sector, model, operation, points_per_unit, row}.
        Filas con sector desconocido o puntos inválidos se saltean (con warning en log).
        """
        wb = load_workbook(filename=path, read_only=True, data_only=True)
        rows: List[dict] = []

        try:
            ws = wb.worksheets[0]
            headers = self._headers(ws)
            mapped = map_columns_by_synonyms(headers, self.SYNONYMS)
            idx = {canon: headers.index(col) for canon, col in mapped.items() if col}

            missing = [c for c in self.REQUIRED if c not in idx]
            if missing:
                raise ValueError(f"Matriz: faltan columnas {missing}")

            for n, values in enumerate(ws.iter_rows(min_row=2, values_only=True), start=2):
                if not values or all(v in (None, "") for v in values):
                    continue

                def cell(canon):
                    i = idx[canon]
                    return values[i] if i < len(values) else None

                sector = normalize_sector(cell("sector"))
                model = normalize_name(cell("model"))
                operation = normalize_name(cell("operation"))
                ppu = parse_decimal(cell("points_per_unit"), default=None)

                if not sector or not model or not operation or ppu is None or ppu < 0:
                    logger.warning(f"Matriz: fila {n} inválida, se omite: {values}")
                    continue

                rows.append({
                    "sector": sector,
                    "model": model,
                    "operation": operation,
                    "points_per_unit": ppu,
                    "row": n,
                })
        finally:
            wb.close()

        logger.info(f"Matriz: {len(rows)} reglas leídas de {path}")
        return rows
