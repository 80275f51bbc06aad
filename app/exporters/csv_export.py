# app/exporters/csv_export.py

import os
from typing import Iterable

import pandas as pd

CSV_COLUMNS = ["ID", "Fecha", "Orden", "Operario", "Sector", "Modelo", "Operacion", "Cantidad", "Total Puntos"]


def export_logs_csv(logs: Iterable, output_folder: str, filename: str) -> str:
    """
    CSV para planilla local: separador ';', coma decimal y BOM UTF-8
    (Excel en español lo abre sin asistente).
    """
    os.makedirs(output_folder, exist_ok=True)
    out_path = os.path.join(output_folder, f"{filename}.csv")

    df = pd.DataFrame([{
        "ID": l.id,
        "Fecha": l.timestamp.strftime("%d/%m/%Y") if l.timestamp else "",
        "Orden": l.order_number or "-",
        "Operario": l.operator_name,
        "Sector": l.sector,
        "Modelo": l.model,
        "Operacion": l.operation,
        "Cantidad": int(l.quantity or 0),
        "Total Puntos": float(l.total_points or 0),
    } for l in logs], columns=CSV_COLUMNS)

    df.to_csv(
        out_path,
        sep=";",
        decimal=",",
        float_format="%.2f",
        index=False,
        encoding="utf-8-sig",
    )
    return out_path
