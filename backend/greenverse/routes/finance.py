# Overview: Flask API routes for finance reports and invoices; parses input and returns JSON responses.

# backend/greenverse/routes/finance.py
"""
Finance routes (admin only).

Expenses are estimated from Delivered revenue with the configured
EXPENSE_RATIOS; invoices snapshot their order's amount.
"""
from flask import Blueprint, request

from ..services import reporting_service
from ..roles import Role
from ..decorators import require_auth, require_role


finance_bp = Blueprint("finance", __name__, url_prefix="/api/finance")


@finance_bp.get("/stats")
@require_auth
@require_role(Role.ADMIN)
def finance_stats():
    return reporting_service.finance_stats()


@finance_bp.get("/revenue-trend")
@require_auth
@require_role(Role.ADMIN)
def revenue_trend():
    return {"trend": reporting_service.revenue_trend()}


@finance_bp.get("/expenses")
@require_auth
@require_role(Role.ADMIN)
def expenses():
    return {"expenses": reporting_service.expense_breakdown()}


@finance_bp.get("/invoices")
@require_auth
@require_role(Role.ADMIN)
def list_invoices():
    return {"invoices": [i.to_dict() for i in reporting_service.list_invoices()]}


@finance_bp.post("/invoices")
@require_auth
@require_role(Role.ADMIN)
def create_invoice_route():
    data = request.get_json(silent=True) or {}
    invoice = reporting_service.create_invoice(data)
    return {"message": "Invoice created successfully", "invoice": invoice.to_dict()}, 201
