# app/services/rules_cache.py

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional

from app.utils.logging import get_logger

logger = get_logger("rules_cache")


@dataclass(frozen=True)
class RuleSnapshot:
    """
    Copia inmutable de una regla, segura para guardar fuera de la sesión.
    """
    id: Optional[int]
    sector: str
    model: str
    operation: str
    points_per_unit: Decimal

    @classmethod
    def from_rule(cls, rule) -> "RuleSnapshot":
        return cls(
            id=getattr(rule, "id", None),
            sector=rule.sector,
            model=rule.model,
            operation=rule.operation,
            points_per_unit=Decimal(str(rule.points_per_unit or 0)),
        )


class RuleCache:
    """
    Cache de la matriz de puntos.

    Clave: versión de la matriz (se incrementa en cada escritura).
    Una entrada vale mientras la versión coincida y no supere el TTL.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._version: Optional[str] = None
        self._loaded_at: float = 0.0
        self._rules: List[RuleSnapshot] = []

    def _fresh(self, version: str) -> bool:
        if self._version is None or self._version != version:
            return False
        return (self._clock() - self._loaded_at) < self.ttl_seconds

    def get(self, version: str, loader: Callable[[], list]) -> List[RuleSnapshot]:
        with self._lock:
            if self._fresh(version):
                return self._rules

            rules = [RuleSnapshot.from_rule(r) for r in loader()]
            self._rules = rules
            self._version = version
            self._loaded_at = self._clock()
            logger.info(f"Matriz cargada version={version} reglas={len(rules)}")
            return rules

    def invalidate(self) -> None:
        with self._lock:
            self._version = None
            self._rules = []


rules_cache = RuleCache()
