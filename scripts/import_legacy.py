# scripts/import_legacy.py
#
# Uso: python -m scripts.import_legacy export.json

import sys

from app import create_app
from app.extensions import db
from app.parsers.legacy_export import LegacyExportParser
from app.services.legacy_import import import_bundle

if len(sys.argv) != 2:
    print("Uso: python -m scripts.import_legacy <export.json>")
    sys.exit(2)

path = sys.argv[1]
app = create_app()

with app.app_context():
    db.create_all()

    parser = LegacyExportParser()
    meta = parser.sniff(path)
    for w in meta.get("warnings", []):
        print("⚠️", w)
    if meta["errors"]:
        for e in meta["errors"]:
            print("❌", e)
        sys.exit(1)

    result = import_bundle(parser.parse(path))
    print("✅ Migración terminada:", result)
