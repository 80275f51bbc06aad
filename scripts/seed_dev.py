# scripts/seed_dev.py

from app import create_app
from app.extensions import db
from app.services.catalogs import CATALOGS
from app.services.legacy_import import import_matrix_rows

OPERATORS = ["Juan Pérez", "María González", "Carlos López", "Ana Martínez", "Luis Rodríguez"]
MODELS = ["Modelo-X", "Modelo-Y", "Modelo-Z", "Modelo-Alpha"]
OPERATIONS = ["Costura Recta", "Remalle", "Ensamblaje Base", "Corte Laser", "Etiquetado", "Control Calidad"]

# Matriz inicial de la planilla ("hoja oculta")
MATRIX = [
    {"sector": "Costura", "model": "Modelo-X", "operation": "Costura Recta", "points_per_unit": 10},
    {"sector": "Costura", "model": "Modelo-X", "operation": "Remalle", "points_per_unit": 8},
    {"sector": "Costura", "model": "Modelo-Y", "operation": "Costura Recta", "points_per_unit": 12},
    {"sector": "Armado", "model": "Modelo-Z", "operation": "Ensamblaje Base", "points_per_unit": 15},
    {"sector": "Corte", "model": "Modelo-X", "operation": "Corte Laser", "points_per_unit": 5},
    {"sector": "Embalaje", "model": "Modelo-X", "operation": "Etiquetado", "points_per_unit": 2},
    {"sector": "Embalaje", "model": "Modelo-Y", "operation": "Etiquetado", "points_per_unit": 2.5},
]

app = create_app()

with app.app_context():
    db.create_all()

    for kind, names in (("operators", OPERATORS), ("models", MODELS), ("operations", OPERATIONS)):
        model = CATALOGS[kind]
        have = {row.name for row in model.query.all()}
        for name in names:
            if name not in have:
                db.session.add(model(name=name))
    db.session.commit()

    result = import_matrix_rows(MATRIX)
    print("Catálogos cargados. Matriz:", result)
