from flask import Blueprint, request

from storefront.routes.schemas import CreateNotificationSchema
from storefront.routes.utils import get_service, json_response, load_body
from storefront.schemas.stock_schemas import (
    NotificationEnvelope, NotificationListEnvelope, NotificationResponse
)
from storefront.services.notification_service import NotificationStore

notifications_bp = Blueprint("notifications", __name__)

_create_schema = CreateNotificationSchema()


@notifications_bp.route("", methods=["POST"])
def subscribe():
    """Subscribe an email to a restock; repeating the call is harmless."""
    data = load_body(_create_schema, "productId and email are required")
    notification, created = get_service(NotificationStore).subscribe(**data)

    if created:
        message, status = "Successfully subscribed to stock availability notifications", 201
    else:
        message, status = "You are already subscribed to notifications for this product", 200

    envelope = NotificationEnvelope(
        notification=NotificationResponse.model_validate(notification.to_dict()),
        message=message,
    )
    return json_response(envelope, status)


@notifications_bp.route("", methods=["GET"])
def list_notifications():
    email = request.args.get("email", "").strip()
    notifications = get_service(NotificationStore).list(email)
    return json_response(NotificationListEnvelope(
        notifications=[NotificationResponse.model_validate(n.to_dict()) for n in notifications]
    ))


@notifications_bp.route("/<notification_id>", methods=["DELETE"])
def unsubscribe(notification_id: str):
    notification = get_service(NotificationStore).unsubscribe(notification_id)
    return json_response(NotificationEnvelope(
        notification=NotificationResponse.model_validate(notification.to_dict()),
        message="Notification subscription removed",
    ))
