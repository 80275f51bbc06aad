# app/blueprints/api/routes.py

from flask import Blueprint, jsonify, request, current_app

from app.services import auth, catalogs, repository
from app.services.auth import admin_required, login_required
from app.services.dashboard import compute_dashboard
from app.services.points import find_rule, price
from app.services.productivity import monthly_report, recent_history
from app.services.recalc import recalculate_stored_logs
from app.utils.dates import parse_day, parse_month, plant_now, window_from_args
from app.utils.numbers import parse_quantity

api_bp = Blueprint("api", __name__)


def _tz():
    return current_app.config.get("PLANT_TIMEZONE", "UTC")


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@api_bp.errorhandler(ValueError)
def _bad_request(e):
    return jsonify({"error": str(e)}), 400


@api_bp.errorhandler(LookupError)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@api_bp.route("/ping")
def ping():
    return jsonify({"status": "ok"})


# ----------------------------
# sesión
# ----------------------------
@api_bp.route("/login", methods=["POST"])
def login():
    data = _payload()
    if data.get("role") == "admin":
        ok = auth.login_admin(data.get("secret") or "")
    else:
        ok = auth.login_operator(data.get("name") or "", data.get("secret") or "")
    if not ok:
        return jsonify({"error": "Credenciales incorrectas."}), 401
    return jsonify({"user": auth.current_user()})


@api_bp.route("/logout", methods=["POST"])
def logout():
    auth.logout()
    return jsonify({"status": "ok"})


# ----------------------------
# matriz de puntos
# ----------------------------
@api_bp.route("/rules")
def list_rules():
    return jsonify([r.to_dict() for r in repository.list_rules()])


@api_bp.route("/rules", methods=["POST"])
@admin_required
def create_rule():
    data = _payload()
    rule = repository.add_rule(
        data.get("sector"), data.get("model"), data.get("operation"), data.get("points_per_unit")
    )
    return jsonify(rule.to_dict()), 201


@api_bp.route("/rules/<int:rule_id>", methods=["PUT"])
@admin_required
def edit_rule(rule_id: int):
    data = _payload()
    fields = {k: data[k] for k in ("sector", "model", "operation", "points_per_unit") if k in data}
    rule = repository.update_rule(rule_id, **fields)
    return jsonify(rule.to_dict())


@api_bp.route("/rules/<int:rule_id>", methods=["DELETE"])
@admin_required
def remove_rule(rule_id: int):
    repository.delete_rule(rule_id)
    return "", 204


@api_bp.route("/points/quote")
def quote():
    """
    Vista previa del formulario: valor unitario y puntos para una cantidad.
    """
    args = request.args
    qty = parse_quantity(args.get("quantity")) or 0
    rule = find_rule(repository.current_rules(), args.get("sector"), args.get("model"), args.get("operation"))
    return jsonify({
        "matched": rule is not None,
        "points_per_unit": float(price(rule, 1)),
        "quantity": qty,
        "total_points": float(price(rule, qty)),
    })


# ----------------------------
# registros de producción
# ----------------------------
@api_bp.route("/logs")
@login_required
def list_logs():
    operator = request.args.get("operator") or None
    if not auth.is_admin():
        operator = auth.current_user()["name"]

    day = parse_day(request.args.get("date"))
    if day:
        logs = repository.logs_for_date(day, operator=operator)
    else:
        today = plant_now(_tz()).date()
        start, end = window_from_args(request.args, today)
        logs = repository.logs_in_range(start, end, operator=operator)

    return jsonify([l.to_dict() for l in logs])


@api_bp.route("/logs", methods=["POST"])
@login_required
def create_log():
    data = _payload()
    operator = data.get("operator_name")
    if not auth.is_admin():
        operator = auth.current_user()["name"]

    log = repository.register_log(
        operator_name=operator,
        sector=data.get("sector"),
        model=data.get("model"),
        operation=data.get("operation"),
        quantity=data.get("quantity"),
        timestamp=data.get("timestamp"),
        order_number=data.get("order_number"),
        comments=data.get("comments"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
    )
    return jsonify(log.to_dict()), 201


@api_bp.route("/logs/<int:log_id>", methods=["PUT"])
@admin_required
def edit_log(log_id: int):
    log = repository.update_log(log_id, **_payload())
    return jsonify(log.to_dict())


@api_bp.route("/logs/<int:log_id>", methods=["DELETE"])
@admin_required
def remove_log(log_id: int):
    repository.delete_log(log_id)
    return "", 204


# ----------------------------
# productividad
# ----------------------------
def _own_or_admin(name: str):
    user = auth.current_user()
    if not auth.is_admin() and user["name"] != name:
        return jsonify({"error": "Solo puede consultar su propia productividad."}), 403
    return None


@api_bp.route("/operators/<name>/productivity")
@login_required
def operator_productivity(name: str):
    denied = _own_or_admin(name)
    if denied:
        return denied

    today = plant_now(_tz()).date()
    ym = parse_month(request.args.get("month", "")) or (today.year, today.month)
    report = monthly_report(
        repository.all_logs(operator=name), name, ym[0], ym[1],
        repository.get_productivity_target(), tz_name=_tz(),
    )
    return jsonify(report)


@api_bp.route("/operators/<name>/history")
@login_required
def operator_history(name: str):
    denied = _own_or_admin(name)
    if denied:
        return denied

    days = current_app.config.get("HISTORY_DAYS", 15)
    if request.args.get("days") not in (None, ""):
        days = parse_quantity(request.args.get("days"))
        if days is None or days < 1:
            raise ValueError("days debe ser un entero positivo.")
    report = recent_history(
        repository.all_logs(operator=name), name,
        repository.get_productivity_target(), days=days, tz_name=_tz(),
    )
    return jsonify(report)


@api_bp.route("/dashboard")
@admin_required
def dashboard():
    today = plant_now(_tz()).date()
    start, end = window_from_args(request.args, today)
    operator = request.args.get("operator") or None

    logs = repository.logs_in_range(start, end, operator=operator)
    stats = compute_dashboard(logs, repository.get_productivity_target(), tz_name=_tz())
    stats.update({"start": start.isoformat(), "end": end.isoformat(), "operator": operator})
    return jsonify(stats)


# ----------------------------
# meta y mantenimiento
# ----------------------------
@api_bp.route("/target")
def get_target():
    return jsonify({"value": repository.get_productivity_target()})


@api_bp.route("/target", methods=["PUT"])
@admin_required
def put_target():
    value = repository.set_productivity_target(_payload().get("value"))
    return jsonify({"value": value})


@api_bp.route("/maintenance/recalculate", methods=["POST"])
@admin_required
def recalculate():
    run = recalculate_stored_logs(
        batch_size=current_app.config.get("RECALC_BATCH_SIZE", 400),
        epsilon=current_app.config.get("POINTS_EPSILON", 0.01),
    )
    body = {
        "run_id": run.id,
        "status": run.status,
        "scanned": run.scanned,
        "modified": run.modified,
        "failed_batches": run.failed_batches,
    }
    if run.status != "DONE":
        body["error"] = run.error_message
        return jsonify(body), 500
    return jsonify(body)


# ----------------------------
# catálogos y noticias
# ----------------------------
@api_bp.route("/catalogs/<kind>")
def get_catalog(kind: str):
    return jsonify(catalogs.list_catalog(kind))


@api_bp.route("/catalogs/<kind>", methods=["POST"])
@admin_required
def add_catalog_item(kind: str):
    row = catalogs.add_catalog_item(kind, _payload().get("name"))
    return jsonify({"name": row.name}), 201


@api_bp.route("/catalogs/<kind>/<name>", methods=["DELETE"])
@admin_required
def remove_catalog_item(kind: str, name: str):
    catalogs.remove_catalog_item(kind, name)
    return "", 204


@api_bp.route("/operators/<name>/pin", methods=["PUT"])
@admin_required
def put_operator_pin(name: str):
    catalogs.set_operator_pin(name, _payload().get("pin"))
    return jsonify({"status": "ok"})


@api_bp.route("/news")
def list_news():
    return jsonify([n.to_dict() for n in catalogs.active_news()])


@api_bp.route("/news", methods=["POST"])
@admin_required
def create_news():
    data = _payload()
    item = catalogs.add_news(
        data.get("title"), data.get("content"), data.get("expires_at"), data.get("priority") or "normal"
    )
    return jsonify(item.to_dict()), 201


@api_bp.route("/news/<int:news_id>", methods=["DELETE"])
@admin_required
def remove_news(news_id: int):
    catalogs.delete_news(news_id)
    return "", 204
