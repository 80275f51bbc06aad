# scripts/recalc_points.py

import sys

from app import create_app
from app.services.recalc import recalculate_stored_logs

app = create_app()

with app.app_context():
    run = recalculate_stored_logs(
        batch_size=app.config["RECALC_BATCH_SIZE"],
        epsilon=app.config["POINTS_EPSILON"],
    )
    print(f"Recalculo {run.status}: {run.modified}/{run.scanned} registros modificados, "
          f"lotes fallidos={run.failed_batches}")
    if run.status != "DONE":
        print("Error:", run.error_message)
        sys.exit(1)
