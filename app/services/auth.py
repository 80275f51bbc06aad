# app/services/auth.py

from abc import ABC, abstractmethod
from functools import wraps

from flask import current_app, session, redirect, url_for, flash, request, jsonify
from werkzeug.security import check_password_hash, generate_password_hash

from app.models import Operator
from app.utils.logging import get_logger

logger = get_logger("auth")

ADMIN_SUBJECT = "admin"


class CredentialVerifier(ABC):
    @abstractmethod
    def verify_credential(self, subject: str, secret: str) -> bool:
        raise NotImplementedError


class AdminPasswordVerifier(CredentialVerifier):
    """
    Clave de ingeniería: se compara contra ADMIN_PASSWORD_HASH (hash werkzeug).
    Sin hash configurado, nadie entra como admin.
    """

    def __init__(self, password_hash: str):
        self.password_hash = password_hash or ""

    def verify_credential(self, subject: str, secret: str) -> bool:
        if subject != ADMIN_SUBJECT or not self.password_hash or not secret:
            return False
        return check_password_hash(self.password_hash, secret)


class OperatorPinVerifier(CredentialVerifier):
    """
    PIN por operario, guardado como hash en Operator.pin_hash.
    Operario sin PIN configurado: entra solo con el nombre.
    """

    def verify_credential(self, subject: str, secret: str) -> bool:
        op = Operator.query.filter_by(name=subject, active=True).first()
        if op is None:
            return False
        if not op.pin_hash:
            return True
        return bool(secret) and check_password_hash(op.pin_hash, secret)


def hash_secret(secret: str) -> str:
    return generate_password_hash(secret)


def admin_verifier() -> AdminPasswordVerifier:
    return AdminPasswordVerifier(current_app.config.get("ADMIN_PASSWORD_HASH", ""))


def login_admin(password: str) -> bool:
    ok = admin_verifier().verify_credential(ADMIN_SUBJECT, password)
    if ok:
        session["user"] = {"name": "Gerente Planta", "role": "admin"}
    logger.info(f"Login admin ok={ok}")
    return ok


def login_operator(name: str, pin: str = "") -> bool:
    ok = OperatorPinVerifier().verify_credential(name, pin)
    if ok:
        session["user"] = {"name": name, "role": "operator"}
    logger.info(f"Login operario={name} ok={ok}")
    return ok


def logout() -> None:
    session.pop("user", None)


def current_user():
    return session.get("user")


def is_admin() -> bool:
    user = current_user()
    return bool(user) and user.get("role") == "admin"


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if is_admin():
            return view(*args, **kwargs)
        if request.blueprint == "api":
            return jsonify({"error": "Requiere acceso de ingeniería."}), 403
        flash("Requiere acceso de ingeniería.", "error")
        return redirect(url_for("web.login", next=request.path))
    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user():
            return view(*args, **kwargs)
        if request.blueprint == "api":
            return jsonify({"error": "Sesión requerida."}), 401
        return redirect(url_for("web.login", next=request.path))
    return wrapper
