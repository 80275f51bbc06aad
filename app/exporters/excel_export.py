# app/exporters/excel_export.py

import os
from typing import Iterable, Optional

import pandas as pd

from app.services.dashboard import compute_dashboard
from app.services.productivity import aggregate_by_day, compute_averages


def logs_dataframe(logs: Iterable) -> pd.DataFrame:
    return pd.DataFrame([{
        "ID": l.id,
        "Fecha": l.timestamp.strftime("%Y-%m-%d %H:%M") if l.timestamp else "",
        "Orden": l.order_number or "-",
        "Operario": l.operator_name,
        "Sector": l.sector,
        "Modelo": l.model,
        "Operación": l.operation,
        "Cantidad": int(l.quantity or 0),
        "Total Puntos": float(l.total_points or 0),
        "Sin Valor": bool(l.is_unrated),
        "Observaciones": l.comments or "",
    } for l in logs], columns=[
        "ID", "Fecha", "Orden", "Operario", "Sector", "Modelo", "Operación",
        "Cantidad", "Total Puntos", "Sin Valor", "Observaciones",
    ])


def export_logs_excel(logs: Iterable, output_folder: str, filename: str, target,
                      tz_name: Optional[str] = None) -> str:
    """
    Genera <output_folder>/<filename>.xlsx con multihoja:
      Registros, Resumen_Diario (por operario y día), Operarios
    """
    logs = list(logs)
    os.makedirs(output_folder, exist_ok=True)
    out_path = os.path.join(output_folder, f"{filename}.xlsx")

    by_operator = {}
    for l in logs:
        by_operator.setdefault(l.operator_name, []).append(l)

    diario = []
    operarios = []
    for name in sorted(by_operator):
        days = aggregate_by_day(by_operator[name], tz_name=tz_name)
        for d in days:
            diario.append({
                "Operario": name,
                "Día": d.day.isoformat(),
                "Puntos": float(d.points),
                "Unidades": d.quantity,
                "Registros": d.entries,
                "Día Mixto": d.has_unrated,
                "Válido Liquidación": d.is_pure,
            })
        averages = compute_averages(days, target)
        operarios.append({
            "Operario": name,
            "Días Trabajados": len(days),
            "Días Puros": sum(1 for d in days if d.is_pure),
            "Total Puntos": float(sum(d.points for d in days)),
            "Promedio Bruto %": round(averages["avg_general"], 2),
            "Promedio Liquidación %": round(averages["avg_productive"], 2),
        })

    stats = compute_dashboard(logs, target, tz_name=tz_name)
    df_kpi = pd.DataFrame([{
        "Meta Diaria": float(target),
        "Total Puntos": stats["total_points"],
        "Unidades": stats["total_units"],
        "Registros": stats["entries"],
        "Registros Sin Valor": stats["unrated_entries"],
        "Operarios Activos": stats["active_operators"],
        "Eficiencia Global %": round(stats["efficiency"], 2),
    }])

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        logs_dataframe(logs).to_excel(writer, sheet_name="Registros", index=False)
        pd.DataFrame(diario).to_excel(writer, sheet_name="Resumen_Diario", index=False)
        pd.DataFrame(operarios).to_excel(writer, sheet_name="Operarios", index=False)
        df_kpi.to_excel(writer, sheet_name="KPIs", index=False)

    return out_path
