from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import admin_required, current_caller, login_required
from ..common.http import json_body, page_args, to_json


def register(app: Flask, container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @login_required
    def payroll_list():
        limit, offset = page_args()
        rows = service.list_payrolls(
            caller=current_caller(),
            employee_id=request.args.get("employee_id"),
            status=request.args.get("status"),
            period_start=request.args.get("pay_period_start"),
            period_end=request.args.get("pay_period_end"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"payroll": to_json(rows)})

    @app.route("/api/payroll", methods=["POST"], endpoint="payroll_create")
    @admin_required
    def payroll_create():
        record = service.create_payroll(caller=current_caller(), payload=json_body())
        return jsonify({"payroll": to_json(record)}), 201

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="payroll_calculate")
    @admin_required
    def payroll_calculate():
        calc = service.calculate(caller=current_caller(), payload=json_body())
        return jsonify(to_json(calc))

    @app.route("/api/payroll/bulk-create", methods=["POST"], endpoint="payroll_bulk_create")
    @admin_required
    def payroll_bulk_create():
        outcome = service.bulk_create(caller=current_caller(), payload=json_body())
        return jsonify(to_json(outcome))

    @app.route("/api/payroll/stats/summary", methods=["GET"], endpoint="payroll_stats_summary")
    @admin_required
    def payroll_stats_summary():
        summary = service.summary(
            caller=current_caller(),
            period_start=request.args.get("pay_period_start"),
            period_end=request.args.get("pay_period_end"),
        )
        return jsonify(to_json(summary))

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="payroll_get")
    @login_required
    def payroll_get(payroll_id: int):
        return jsonify({"payroll": to_json(service.get_payroll(caller=current_caller(), payroll_id=payroll_id))})

    @app.route("/api/payroll/<int:payroll_id>", methods=["PUT"], endpoint="payroll_update")
    @admin_required
    def payroll_update(payroll_id: int):
        record = service.update_payroll(caller=current_caller(), payroll_id=payroll_id, payload=json_body())
        return jsonify({"payroll": to_json(record)})

    @app.route("/api/payroll/<int:payroll_id>/status", methods=["PUT"], endpoint="payroll_status")
    @admin_required
    def payroll_status(payroll_id: int):
        record = service.transition(caller=current_caller(), payroll_id=payroll_id, payload=json_body())
        return jsonify({"payroll": to_json(record)})

    @app.route("/api/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="payroll_delete")
    @admin_required
    def payroll_delete(payroll_id: int):
        service.delete_payroll(caller=current_caller(), payroll_id=payroll_id)
        return jsonify({"message": "Payroll record deleted"})
