from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import AttendanceRule


class AttendanceRuleRepository(Protocol):
    def get_by_id(self, business_id: int, rule_id: int) -> Optional[AttendanceRule]:
        raise NotImplementedError

    def list_rules(self, business_id: int) -> Sequence[AttendanceRule]:
        raise NotImplementedError

    def get_active(self, business_id: int) -> Optional[AttendanceRule]:
        """Active rule of the business; most recently created wins if ever ambiguous."""

        raise NotImplementedError

    def create(self, business_id: int, fields: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def update(self, business_id: int, rule_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def activate(self, business_id: int, rule_id: int) -> None:
        """Make `rule_id` the only active rule of the business in one statement."""

        raise NotImplementedError

    def deactivate(self, business_id: int, rule_id: int) -> bool:
        raise NotImplementedError
