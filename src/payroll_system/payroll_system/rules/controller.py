from __future__ import annotations

from flask import Flask, jsonify

from ..common.auth import admin_required, current_caller, login_required
from ..common.http import json_body, to_json


def register(app: Flask, container) -> None:
    service = container.rule_service

    @app.route("/api/attendance-rules", methods=["GET"], endpoint="attendance_rules_list")
    @admin_required
    def attendance_rules_list():
        return jsonify({"rules": to_json(service.list_rules(caller=current_caller()))})

    @app.route("/api/attendance-rules", methods=["POST"], endpoint="attendance_rules_create")
    @admin_required
    def attendance_rules_create():
        rule = service.create_rule(caller=current_caller(), payload=json_body())
        return jsonify({"rule": to_json(rule)}), 201

    @app.route("/api/attendance-rules/active", methods=["GET"], endpoint="attendance_rules_active")
    @login_required
    def attendance_rules_active():
        return jsonify({"rule": to_json(service.get_active_rule(caller=current_caller()))})

    @app.route("/api/attendance-rules/<int:rule_id>", methods=["PUT"], endpoint="attendance_rules_update")
    @admin_required
    def attendance_rules_update(rule_id: int):
        rule = service.update_rule(caller=current_caller(), rule_id=rule_id, payload=json_body())
        return jsonify({"rule": to_json(rule)})

    @app.route("/api/attendance-rules/<int:rule_id>/activate", methods=["POST"], endpoint="attendance_rules_activate")
    @admin_required
    def attendance_rules_activate(rule_id: int):
        return jsonify({"rule": to_json(service.activate_rule(caller=current_caller(), rule_id=rule_id))})
