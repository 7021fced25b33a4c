from __future__ import annotations

from flask import Flask, current_app, jsonify, request
from pydantic import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException


class ServiceError(ValueError):
    status_code = 400

    def __init__(self, message: str, **extra: object) -> None:
        super().__init__(message)
        self.extra = extra


class ValidationError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class DeliveryError(ServiceError):
    status_code = 503


def envelope(data=None, message: str | None = None, status: int = 200, **extra):
    body: dict[str, object] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def error_envelope(message: str, status: int, error: str | None = None, **extra):
    body: dict[str, object] = {"success": False, "message": message}
    if error:
        body["error"] = error
    body.update(extra)
    return jsonify(body), status


def json_body() -> dict[str, object]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON in request body")
    return data


def parse_body(schema):
    return schema.model_validate(json_body())


def schema_error_message(exc: SchemaValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    text = first.get("msg", "Invalid value")
    return f"{location}: {text}" if location else text


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def service_error(exc: ServiceError):
        return error_envelope(str(exc), exc.status_code, **exc.extra)

    @app.errorhandler(SchemaValidationError)
    def schema_error(exc: SchemaValidationError):
        return error_envelope(schema_error_message(exc), 400)

    @app.errorhandler(404)
    def not_found(_error):
        return error_envelope("Endpoint not found", 404, available_endpoints="/api")

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return error_envelope("Method not allowed", 405)

    @app.errorhandler(413)
    def too_large(_error):
        return error_envelope("Request body too large", 413)

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return error_envelope(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def unexpected(exc: Exception):
        current_app.logger.exception("Unhandled error: %s", exc)
        if current_app.debug or current_app.testing:
            return error_envelope("Internal server error", 500, error=str(exc))
        return error_envelope("Internal server error", 500)
