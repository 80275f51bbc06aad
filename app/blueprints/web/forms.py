# app/blueprints/web/forms.py

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed
from wtforms import (
    SelectField, StringField, IntegerField, DecimalField, PasswordField,
    TextAreaField, DateTimeLocalField, SubmitField,
)
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, Length

from app.models import Sector

SECTOR_CHOICES = [(s, s) for s in Sector.values()]


class LoginForm(FlaskForm):
    mode = SelectField("Acceso", choices=[("operator", "Operario"), ("admin", "Ingeniería")])
    operator_name = SelectField("Operario", choices=[], validate_choice=False)
    secret = PasswordField("Clave / PIN")
    submit = SubmitField("Ingresar")


class ProductionLogForm(FlaskForm):
    operator_name = SelectField("Operario", choices=[], validators=[DataRequired()], validate_choice=False)
    sector = SelectField("Sector", choices=SECTOR_CHOICES, default=Sector.CORTE.value)
    model = SelectField("Modelo", choices=[], validators=[DataRequired()], validate_choice=False)
    operation = SelectField("Operación", choices=[], validators=[DataRequired()], validate_choice=False)

    quantity = IntegerField(
        "Cantidad",
        validators=[DataRequired(), NumberRange(min=1, message="La cantidad debe ser positiva.")],
    )

    start_time = StringField("Inicio", default="08:00", validators=[Optional(), Length(max=5)])
    end_time = StringField("Fin", default="17:00", validators=[Optional(), Length(max=5)])

    order_number = StringField("N° Orden", validators=[Optional(), Length(max=60)])
    comments = TextAreaField("Observaciones", validators=[Optional(), Length(max=1000)])

    # confirmación explícita para combinaciones sin valor en la matriz
    confirm_unrated = SelectField("Guardar sin valor", choices=[("no", "No"), ("yes", "Sí")], default="no")

    submit = SubmitField("Guardar")


class PointRuleForm(FlaskForm):
    sector = SelectField("Sector", choices=SECTOR_CHOICES, default=Sector.CORTE.value)
    model = SelectField("Modelo", choices=[], validators=[DataRequired()], validate_choice=False)
    operation = SelectField("Operación", choices=[], validators=[DataRequired()], validate_choice=False)
    points_per_unit = DecimalField(
        "Puntos por unidad",
        places=4,
        validators=[InputRequired(), NumberRange(min=0)],
    )
    submit = SubmitField("Agregar")


class CatalogItemForm(FlaskForm):
    kind = SelectField(
        "Lista",
        choices=[("operators", "Operarios"), ("models", "Modelos"), ("operations", "Operaciones")],
    )
    name = StringField("Nombre", validators=[DataRequired(), Length(max=120)])
    submit = SubmitField("Agregar")


class TargetForm(FlaskForm):
    value = IntegerField("Meta diaria", validators=[DataRequired(), NumberRange(min=1)])
    submit = SubmitField("Guardar")


class NewsForm(FlaskForm):
    title = StringField("Título", validators=[DataRequired(), Length(max=200)])
    content = TextAreaField("Contenido", validators=[Optional()])
    expires_at = DateTimeLocalField("Vence", format="%Y-%m-%dT%H:%M", validators=[DataRequired()])
    priority = SelectField("Prioridad", choices=[("normal", "Normal"), ("high", "Alta")])
    submit = SubmitField("Publicar")


class MatrixUploadForm(FlaskForm):
    archivo_matriz = FileField(
        "Matriz de puntos (.xlsx)",
        validators=[
            FileRequired(),
            FileAllowed(["xlsx"], "Solo se permiten archivos .xlsx"),
        ],
    )
    submit = SubmitField("Importar")
