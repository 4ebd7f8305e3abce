# Overview: Flask API routes for the public dashboard; returns aggregate JSON.

# backend/greenverse/routes/dashboard.py
from flask import Blueprint

from ..services import reporting_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
def dashboard_stats():
    return reporting_service.dashboard_stats()


@dashboard_bp.get("/orders-trend")
def orders_trend():
    return {"trend": reporting_service.orders_trend()}
