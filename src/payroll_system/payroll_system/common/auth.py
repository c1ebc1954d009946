from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller as stored in the session by the login layer."""

    business_id: int
    role: Role
    employee_id: Optional[int] = None
    user_id: Optional[int] = None

    @property
    def is_employee(self) -> bool:
        return self.role == Role.EMPLOYEE

    def scope_employee_id(self, requested: Optional[int]) -> Optional[int]:
        """Employees only ever see their own rows; managers may pick anyone."""
        if not self.is_employee:
            return requested
        if requested is not None and int(requested) != self.employee_id:
            raise AuthorizationError("Employees can only access their own records")
        return self.employee_id

    def require_manager(self) -> None:
        if not self.role.is_staff_manager:
            raise AuthorizationError("Administrator access required")


def current_caller() -> CallerContext:
    try:
        role = Role(session.get("role"))
    except ValueError:
        raise AuthorizationError("Unknown role")

    employee_id = session.get("employee_id")
    user_id = session.get("user_id")
    return CallerContext(
        business_id=int(session["business_id"]),
        role=role,
        employee_id=int(employee_id) if employee_id is not None else None,
        user_id=int(user_id) if user_id is not None else None,
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "business_id" not in session or "role" not in session:
            return jsonify({"error": "Authentication required", "type": "authentication"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    """Allow business owners, admins and managers."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "business_id" not in session or "role" not in session:
            return jsonify({"error": "Authentication required", "type": "authentication"}), 401

        if session.get("role") == Role.EMPLOYEE.value:
            return jsonify({"error": "Administrator access required", "type": "authorization"}), 403

        return view(*args, **kwargs)

    return wrapper
