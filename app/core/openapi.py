"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer token security scheme, required only by the operations that
  identify the caller

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# (path, method) pairs that need a bearer token
_AUTHENTICATED_OPERATIONS = {
    ("/v1/quotes", "post"),
    ("/v1/quotes/mine", "get"),
    ("/v1/quotes/{quote_id}", "delete"),
    ("/v1/functions/update-quote", "post"),
    ("/v1/functions/update-quote", "put"),
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer auth (``Authorization``)
    - Marks the authenticated operations as requiring it; everything else
      (gallery, detail, health, preflight) is public
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Access token issued by the auth provider.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Quotes",
                "description": "Submit, browse, edit and delete quotes.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if (path, method) in _AUTHENTICATED_OPERATIONS:
                    method_obj["security"] = [{"BearerAuth": []}]
                else:
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
