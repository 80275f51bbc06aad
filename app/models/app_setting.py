# app/models/app_setting.py

from datetime import datetime

from app.extensions import db


class AppSetting(db.Model):
    __tablename__ = "app_settings"

    key = db.Column(db.String(60), primary_key=True)
    value = db.Column(db.String(255))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
