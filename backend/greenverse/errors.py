# backend/greenverse/errors.py
"""
Error taxonomy shared by services and routes.

Services raise ApiError subclasses; the handlers registered here turn them
into JSON bodies of the form {"error": message, **details}. Anything that
is not an ApiError becomes a generic 500 after being logged.
"""
from __future__ import annotations

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.details)
        return body


class InvalidInput(ApiError):
    """Missing or malformed request fields."""
    status_code = 400


class Unauthorized(ApiError):
    """Missing, malformed or expired credential."""
    status_code = 401


class Forbidden(ApiError):
    """Valid credential, wrong role or ownership."""
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    """Duplicate unique key or a state conflict."""
    status_code = 409


class InsufficientStock(ApiError):
    status_code = 400

    def __init__(self, *, product_id: str, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested": requested,
                "available": available,
            },
        )


class ProfileIncomplete(ApiError):
    status_code = 400

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            "Please complete your profile before placing an order",
            details={"profileIncomplete": True, "missing_fields": missing_fields},
        )


class InvalidStatusTransition(Conflict):
    def __init__(self, current: str, requested: str, allowed: list[str]):
        super().__init__(
            f"Cannot change order status from {current} to {requested}",
            details={"from": current, "to": requested, "allowed": allowed},
        )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        if exc.status_code >= 500:
            current_app.logger.error("API error: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description or exc.name}), exc.code

        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        body = {"error": "Internal server error"}
        if current_app.config.get("APP_ENV") == "development":
            body["message"] = str(exc)
        return jsonify(body), 500
