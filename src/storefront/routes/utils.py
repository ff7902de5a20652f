from typing import Type, TypeVar

from flask import current_app, jsonify, request
from marshmallow import Schema, ValidationError as SchemaValidationError

from storefront.core.exceptions import ValidationError
from storefront.schemas.stock_schemas import CamelModel

T = TypeVar("T")


def json_response(envelope: CamelModel, status: int = 200):
    """Serialize a response envelope with its wire (camelCase) names."""
    return jsonify(envelope.to_json_dict()), status


def load_body(schema: Schema, message: str = "Invalid request body", allow_empty: bool = False) -> dict:
    """
    Validate the JSON body against a marshmallow schema.

    Schema errors surface as a 400 ValidationError with one entry per field.
    """
    payload = request.get_json(silent=True)
    if payload is None and allow_empty:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError(message)
    try:
        return schema.load(payload)
    except SchemaValidationError as err:
        field_errors = [
            {"field": field, "message": "; ".join(map(str, errors)) if isinstance(errors, list) else str(errors)}
            for field, errors in err.messages.items()
        ]
        raise ValidationError(message, field_errors)


def get_service(service_class: Type[T]) -> T:
    """Resolve a shared store from the app's dependency container."""
    return current_app.extensions["storefront"].get(service_class)
