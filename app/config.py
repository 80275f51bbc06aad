# app/config.py

import os

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

    # PostgreSQL (Render / local)
    # Render a veces entrega DATABASE_URL como postgres:// (deprecated)
    uri = os.getenv("DATABASE_URL", "postgresql://localhost/produccion_puntos")
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)

    # Forzar driver pg8000 (para evitar psycopg2 en Render)
    # Si ya viene con driver, no lo tocamos
    if uri.startswith("postgresql://") and "+pg8000" not in uri:
        uri = uri.replace("postgresql://", "postgresql+pg8000://", 1)

    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Rutas de archivos
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    OUTPUT_FOLDER = os.getenv("OUTPUT_FOLDER", "outputs")

    # Limite upload (10MB)
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # Meta diaria de puntos por operario
    DEFAULT_PRODUCTIVITY_TARGET = float(os.getenv("DEFAULT_PRODUCTIVITY_TARGET", "24960"))

    # Recalculo masivo
    RECALC_BATCH_SIZE = int(os.getenv("RECALC_BATCH_SIZE", "400"))
    POINTS_EPSILON = float(os.getenv("POINTS_EPSILON", "0.01"))

    # Cache de la matriz de puntos
    RULES_CACHE_TTL_SECONDS = int(os.getenv("RULES_CACHE_TTL_SECONDS", "300"))

    # Zona horaria de planta: define el "día" de cada registro
    PLANT_TIMEZONE = os.getenv("PLANT_TIMEZONE", "America/Argentina/Buenos_Aires")

    # Historial reciente (días con producción)
    HISTORY_DAYS = int(os.getenv("HISTORY_DAYS", "15"))

    # Hash werkzeug de la clave de ingeniería (nunca texto plano)
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH", "")

    # Solo desarrollo/tests: crear tablas sin migraciones
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "0") == "1"
