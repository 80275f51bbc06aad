# app/models/catalog.py

from app.extensions import db


class Operator(db.Model):
    __tablename__ = "operators"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    # hash werkzeug del PIN; None = operario sin PIN
    pin_hash = db.Column(db.String(255))
    active = db.Column(db.Boolean, nullable=False, default=True)


class ProductModel(db.Model):
    __tablename__ = "product_models"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)


class Operation(db.Model):
    __tablename__ = "operations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
