from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..rules.model import AttendanceRule
from .strategies.base import AttendanceStrategy
from .strategies.fallback_strategy import FallbackStrategy
from .strategies.rule_strategy import RuleStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the classification strategy for a policy."""

    def for_rule(self, rule: Optional[AttendanceRule]) -> AttendanceStrategy:
        if rule is None:
            return FallbackStrategy()
        return RuleStrategy(rule)
