# Overview: Flask API routes for AI shortage notifications.

"""
AI notification routes.

POST is called by the forecasting service (X-Service-Key); the other
routes act on the caller's own notifications.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_service_key
from ..exceptions import InventoryError, ValidationError
from ..responses import error_response, internal_error, success
from ..services import notification_service
from ..validation import coerce_int

ai_notifications_bp = Blueprint("ai_notifications", __name__, url_prefix="/api/ai-notifications")


@ai_notifications_bp.post("/")
@require_service_key
def create_notification():
    payload = request.get_json(silent=True) or {}
    try:
        if payload.get("product_id") is None or not payload.get("message") or payload.get("forecast") is None:
            raise ValidationError("Missing required fields: product_id, message, and forecast are required")
        notification = notification_service.create_notification(
            product_id=coerce_int(payload["product_id"], "product_id", minimum=1),
            message=payload["message"],
            forecast=payload["forecast"],
            shortage_date=payload.get("shortage_date"),
            replenishment_plan=payload.get("replenishment_plan"),
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create AI notification")
        return internal_error()
    return success(notification.to_dict(), "Notification created successfully", 201)


@ai_notifications_bp.get("/")
@require_auth
def list_notifications():
    rows = notification_service.list_notifications(g.current_user.id)
    return success([n.to_dict() for n in rows], "Notifications retrieved successfully")


@ai_notifications_bp.put("/<int:notification_id>/read")
@require_auth
def mark_as_read(notification_id: int):
    try:
        notification = notification_service.mark_as_read(notification_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(notification.to_dict(), "Notification marked as read")


@ai_notifications_bp.put("/<int:notification_id>/dismiss")
@require_auth
def dismiss(notification_id: int):
    try:
        notification = notification_service.dismiss(notification_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(notification.to_dict(), "Notification dismissed")


@ai_notifications_bp.delete("/<int:notification_id>")
@require_auth
def delete_notification(notification_id: int):
    try:
        notification_service.delete_notification(notification_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(message="Notification deleted successfully")
