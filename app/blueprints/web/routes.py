# app/blueprints/web/routes.py

import os
from datetime import datetime

from flask import (
    Blueprint, render_template, request, redirect, url_for,
    flash, send_file, current_app, abort
)
from werkzeug.utils import secure_filename

from app.blueprints.web.forms import (
    LoginForm, ProductionLogForm, PointRuleForm, CatalogItemForm,
    TargetForm, NewsForm, MatrixUploadForm,
)
from app.exporters.csv_export import export_logs_csv
from app.exporters.excel_export import export_logs_excel
from app.models import RecalcRun
from app.parsers.matrix_excel import PointsMatrixParser
from app.services import auth, catalogs, repository
from app.services.auth import admin_required, login_required
from app.services.dashboard import compute_dashboard
from app.services.legacy_import import import_matrix_rows
from app.services.points import unit_value
from app.services.productivity import monthly_report, recent_history
from app.services.recalc import recalculate_stored_logs
from app.services.storage import save_uploaded_file
from app.utils.dates import plant_now, parse_month, window_from_args


web_bp = Blueprint("web", __name__)


def _tz():
    return current_app.config.get("PLANT_TIMEZONE", "UTC")


def _choices(kind):
    return [(n, n) for n in catalogs.list_catalog(kind)]


@web_bp.route("/")
def home():
    return render_template("home.html", news=catalogs.active_news(), user=auth.current_user())


@web_bp.route("/login", methods=["GET", "POST"])
def login():
    form = LoginForm()
    form.operator_name.choices = _choices("operators")

    if request.method == "POST" and form.validate_on_submit():
        if form.mode.data == "admin":
            ok = auth.login_admin(form.secret.data or "")
        else:
            ok = auth.login_operator(form.operator_name.data or "", form.secret.data or "")

        if ok:
            target = request.args.get("next") or url_for("web.home")
            if not target.startswith("/"):
                target = url_for("web.home")
            return redirect(target)

        flash("Credenciales incorrectas.", "error")

    return render_template("login.html", form=form)


@web_bp.route("/logout")
def logout():
    auth.logout()
    return redirect(url_for("web.home"))


# ----------------------------
# carga de producción
# ----------------------------
@web_bp.route("/registro", methods=["GET", "POST"])
@login_required
def registro():
    user = auth.current_user()
    form = ProductionLogForm()

    if auth.is_admin():
        form.operator_name.choices = _choices("operators")
    else:
        form.operator_name.choices = [(user["name"], user["name"])]
        form.operator_name.data = user["name"]

    form.model.choices = _choices("models")
    form.operation.choices = _choices("operations")

    if request.method == "POST":
        if not form.validate_on_submit():
            flash("Formulario inválido. Complete todos los campos requeridos.", "error")
        else:
            value = unit_value(
                repository.current_rules(), form.sector.data, form.model.data, form.operation.data
            )
            if value == 0 and form.confirm_unrated.data != "yes":
                flash(
                    "Esta combinación no tiene valor en la matriz de puntos. "
                    "Confirme para guardar con 0 puntos.",
                    "warn",
                )
            else:
                try:
                    log = repository.register_log(
                        operator_name=form.operator_name.data,
                        sector=form.sector.data,
                        model=form.model.data,
                        operation=form.operation.data,
                        quantity=form.quantity.data,
                        order_number=form.order_number.data,
                        comments=form.comments.data,
                        start_time=form.start_time.data,
                        end_time=form.end_time.data,
                    )
                    flash(f"Registro guardado: {float(log.total_points):g} puntos.", "success")
                    return redirect(url_for("web.registro"))
                except ValueError as e:
                    flash(str(e), "error")

    operator = form.operator_name.data if not auth.is_admin() else request.args.get("operator")
    today = plant_now(_tz()).date()
    today_logs = repository.logs_for_date(today, operator=operator or None)

    history = None
    if operator:
        history = recent_history(
            repository.all_logs(operator=operator),
            operator,
            repository.get_productivity_target(),
            days=current_app.config.get("HISTORY_DAYS", 15),
            tz_name=_tz(),
        )

    return render_template("registro.html", form=form, today_logs=today_logs, history=history)


@web_bp.route("/registro/<int:log_id>/delete", methods=["POST"])
@admin_required
def delete_log(log_id: int):
    try:
        repository.delete_log(log_id)
        flash("Registro eliminado.", "success")
    except LookupError:
        abort(404)
    return redirect(request.referrer or url_for("web.dashboard"))


# ----------------------------
# dashboard gerencial
# ----------------------------
@web_bp.route("/dashboard")
@admin_required
def dashboard():
    today = plant_now(_tz()).date()
    start, end = window_from_args(request.args, today)
    operator = request.args.get("operator") or None

    logs = repository.logs_in_range(start, end, operator=operator)
    target = repository.get_productivity_target()
    stats = compute_dashboard(logs, target, tz_name=_tz())

    return render_template(
        "dashboard.html",
        stats=stats,
        logs=logs,
        target=target,
        start=start,
        end=end,
        operator=operator,
        operators=catalogs.list_catalog("operators"),
        target_form=TargetForm(value=int(target)),
    )


@web_bp.route("/operario/<name>")
@login_required
def operator_detail(name: str):
    user = auth.current_user()
    if not auth.is_admin() and user["name"] != name:
        abort(403)

    today = plant_now(_tz()).date()
    ym = parse_month(request.args.get("month", "")) or (today.year, today.month)
    logs = repository.all_logs(operator=name)
    target = repository.get_productivity_target()

    report = monthly_report(logs, name, ym[0], ym[1], target, tz_name=_tz())
    history = recent_history(
        logs, name, target, days=current_app.config.get("HISTORY_DAYS", 15), tz_name=_tz()
    )
    return render_template("operator.html", report=report, history=history)


# ----------------------------
# panel de ingeniería
# ----------------------------
@web_bp.route("/admin")
@admin_required
def admin_panel():
    rule_form = PointRuleForm()
    rule_form.model.choices = _choices("models")
    rule_form.operation.choices = _choices("operations")

    lists = {kind: catalogs.list_catalog(kind) for kind in catalogs.CATALOGS}
    last_run = RecalcRun.query.order_by(RecalcRun.id.desc()).first()

    return render_template(
        "admin.html",
        lists=lists,
        rules=repository.list_rules(),
        rule_form=rule_form,
        catalog_form=CatalogItemForm(),
        target_form=TargetForm(value=int(repository.get_productivity_target())),
        news_form=NewsForm(),
        matrix_form=MatrixUploadForm(),
        news=catalogs.active_news(),
        last_run=last_run,
    )


@web_bp.route("/admin/catalog", methods=["POST"])
@admin_required
def add_catalog_item():
    form = CatalogItemForm()
    if not form.validate_on_submit():
        flash("Nombre inválido.", "error")
        return redirect(url_for("web.admin_panel"))
    try:
        catalogs.add_catalog_item(form.kind.data, form.name.data)
        flash(f"Agregado: {form.name.data.strip()}", "success")
    except ValueError as e:
        flash(str(e), "error")
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/catalog/<kind>/<name>/delete", methods=["POST"])
@admin_required
def remove_catalog_item(kind: str, name: str):
    try:
        catalogs.remove_catalog_item(kind, name)
        flash(f"Eliminado: {name}", "success")
    except (ValueError, LookupError) as e:
        flash(str(e), "error")
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/rules", methods=["POST"])
@admin_required
def add_rule():
    form = PointRuleForm()
    form.model.choices = _choices("models")
    form.operation.choices = _choices("operations")

    if not form.validate_on_submit():
        flash("Complete todos los campos de la regla.", "error")
        return redirect(url_for("web.admin_panel"))
    try:
        repository.add_rule(form.sector.data, form.model.data, form.operation.data, form.points_per_unit.data)
        flash("Regla agregada.", "success")
    except ValueError as e:
        flash(str(e), "error")
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/rules/<int:rule_id>/delete", methods=["POST"])
@admin_required
def delete_rule(rule_id: int):
    try:
        repository.delete_rule(rule_id)
        flash("Regla eliminada.", "success")
    except LookupError:
        abort(404)
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/matrix/upload", methods=["POST"])
@admin_required
def upload_matrix():
    form = MatrixUploadForm()
    if not form.validate_on_submit():
        flash("Archivo inválido. Solo se permiten archivos .xlsx", "error")
        return redirect(url_for("web.admin_panel"))

    saved = save_uploaded_file(
        form.archivo_matriz.data,
        base_upload_folder=current_app.config.get("UPLOAD_FOLDER", "uploads"),
        kind="matriz",
    )

    parser = PointsMatrixParser()
    meta = parser.sniff(saved["stored_path"])
    if meta["errors"]:
        for msg in meta["errors"]:
            flash(msg, "error")
        return redirect(url_for("web.admin_panel"))

    result = import_matrix_rows(parser.parse(saved["stored_path"]))
    flash(
        f"Matriz importada: {result['created']} nuevas, {result['updated']} actualizadas, "
        f"{result['skipped']} omitidas.",
        "success",
    )
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/target", methods=["POST"])
@admin_required
def save_target():
    form = TargetForm()
    if not form.validate_on_submit():
        flash("La meta debe ser un número positivo.", "error")
    else:
        repository.set_productivity_target(form.value.data)
        flash("Meta diaria actualizada.", "success")
    return redirect(request.referrer or url_for("web.admin_panel"))


@web_bp.route("/admin/recalc", methods=["POST"])
@admin_required
def recalc():
    run = recalculate_stored_logs(batch_size=current_app.config.get("RECALC_BATCH_SIZE", 400),
                                  epsilon=current_app.config.get("POINTS_EPSILON", 0.01))
    if run.status == "DONE":
        flash(f"Recalculo completo: {run.modified} registros actualizados de {run.scanned}.", "success")
    else:
        flash(f"Recalculo falló: {run.error_message}", "error")
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/news", methods=["POST"])
@admin_required
def add_news():
    form = NewsForm()
    if not form.validate_on_submit():
        flash("Noticia inválida.", "error")
        return redirect(url_for("web.admin_panel"))
    try:
        catalogs.add_news(form.title.data, form.content.data, form.expires_at.data, form.priority.data)
        flash("Noticia publicada.", "success")
    except ValueError as e:
        flash(str(e), "error")
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/news/<int:news_id>/delete", methods=["POST"])
@admin_required
def delete_news(news_id: int):
    try:
        catalogs.delete_news(news_id)
    except LookupError:
        abort(404)
    return redirect(url_for("web.admin_panel"))


@web_bp.route("/admin/logs/clear", methods=["POST"])
@admin_required
def clear_logs():
    if request.form.get("confirm") != "BORRAR":
        flash("Escriba BORRAR para confirmar.", "error")
        return redirect(url_for("web.admin_panel"))
    n = repository.clear_logs()
    flash(f"Se eliminaron {n} registros.", "success")
    return redirect(url_for("web.admin_panel"))


# ----------------------------
# exportaciones
# ----------------------------
@web_bp.route("/export/<fmt>")
@admin_required
def export_logs(fmt: str):
    """
    Descarga CSV / Excel de la ventana filtrada (mismos filtros que el dashboard).
    """
    today = plant_now(_tz()).date()
    start, end = window_from_args(request.args, today)
    operator = request.args.get("operator") or None
    logs = repository.logs_in_range(start, end, operator=operator)

    output_folder = current_app.config.get("OUTPUT_FOLDER", "outputs")
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    # el operario viene de la URL: sin separadores de ruta
    label = secure_filename(operator or "") or "General"
    filename = f"Produccion_{label}_{start.isoformat()}_{end.isoformat()}"
    folder = os.path.join(output_folder, stamp)

    if fmt == "csv":
        path = export_logs_csv(logs, folder, filename)
    elif fmt == "xlsx":
        path = export_logs_excel(
            logs, folder, filename, repository.get_productivity_target(), tz_name=_tz()
        )
    else:
        abort(404)

    return send_file(os.path.abspath(path), as_attachment=True, download_name=os.path.basename(path))
