# app/models/__init__.py

from .point_rule import PointRule, Sector
from .production_log import ProductionLog
from .catalog import Operator, ProductModel, Operation
from .app_setting import AppSetting
from .news_item import NewsItem
from .recalc_run import RecalcRun
