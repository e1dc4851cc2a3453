from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Just a Drop API",
            version="0.1.0",
            summary="Authentication and session core for the Just a Drop volunteering platform",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "sessionToken",
                "description": "Session token cookie set by the verify and login endpoints (checked first)",
            },
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Session token for cross-origin API clients",
            },
            "SessionTokenHeader": {
                "type": "apiKey",
                "in": "header",
                "name": "X-Session-Token",
                "description": "Session token header (checked last)",
            },
        }
        openapi_schema["security"] = [{"SessionCookie": []}, {"BearerAuth": []}, {"SessionTokenHeader": []}]

        public_endpoints = {
            ("POST", "/api/v1/auth/otp/send"),
            ("POST", "/api/v1/auth/otp/verify"),
            ("POST", "/api/v1/moderator-auth/otp/send"),
            ("POST", "/api/v1/moderator-auth/otp/verify"),
            ("POST", "/api/v1/moderator/seed"),
            ("POST", "/api/v1/organizations/register"),
            ("POST", "/api/v1/organizations/login"),
            ("GET", "/health"),
            ("GET", "/health/liveness"),
            ("GET", "/health/readiness"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class Envelope[T](BaseModel):
    """Successful response wrapper."""

    success: bool = True
    data: T


def ok[T](data: T) -> Envelope[T]:
    return Envelope(data=data)


class MessageData(BaseModel):
    message: str


class ErrorBody(BaseModel):
    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    error: ErrorBody

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": {"message": "Invalid or expired OTP code", "type": "validation_error"}},
                {"success": False, "error": {"message": "Invalid or expired session", "type": "unauthorized"}},
                {"success": False, "error": {"message": "Organization is blacklisted", "type": "forbidden"}},
            ]
        }
    }
