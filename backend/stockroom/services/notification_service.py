# Overview: Service-layer operations for AI notifications; shortage warnings and the alert email.

"""
AI shortage notifications.

The forecasting service posts a warning for one product; the owner is
whoever owns that product. When the warning carries a non-blank
replenishment plan and the owner has an email address, an alert email
is sent after the notification is committed. Email failures are logged
and never reach the caller.
"""

from __future__ import annotations

import logging

from flask import current_app

from ..exceptions import NotFoundError, ValidationError
from ..extensions import db
from ..models import AINotification, Product
from . import email_service
from .status_service import NotificationStatus, StatusKind, get_status_row

logger = logging.getLogger(__name__)


def create_notification(
    *,
    product_id: int,
    message: str,
    forecast: list,
    shortage_date: str | None = None,
    replenishment_plan: str | None = None,
) -> AINotification:
    if not message or not isinstance(message, str):
        raise ValidationError("message is required")
    if not isinstance(forecast, list):
        raise ValidationError("forecast must be a list")
    if replenishment_plan is not None and not isinstance(replenishment_plan, str):
        raise ValidationError("replenishment_plan must be a string")

    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    owner = product.user

    plan = (replenishment_plan or "").strip() or None
    notification = AINotification(
        user_id=product.user_id,
        product_id=product.id,
        status_id=get_status_row(db.session, StatusKind.AI_NOTIFICATION, NotificationStatus.NEW).id,
        message=message,
        prediction_details={
            "shortage_date": shortage_date or None,
            "forecast": forecast,
            "replenishment_plan": plan,
        },
    )
    db.session.add(notification)
    db.session.commit()
    logger.info("AI notification %s created for product %s (user %s)", notification.id, product.id, owner.id)

    if plan:
        _send_alert(owner, product, message, plan)

    return notification


def _send_alert(owner, product: Product, message: str, plan: str) -> None:
    email = (owner.email or "").strip()
    if not email:
        logger.error("Cannot send shortage alert: user %s has no email", owner.id)
        return
    subject, html = email_service.render_shortage_alert(
        full_name=owner.full_name,
        product_name=product.name,
        message=message,
        plan=plan,
    )
    if current_app.config.get("ALERT_EMAIL_IN_BACKGROUND", True):
        email_service.run_in_background(_deliver_alert, email, subject, html, product.id)
    else:
        _deliver_alert(email, subject, html, product.id)


def _deliver_alert(email: str, subject: str, html: str, product_id: int) -> None:
    try:
        sent = email_service.send_email(email, subject, html)
    except Exception:
        logger.exception("Error sending shortage alert for notification on product %s", product_id)
        return
    if not sent:
        logger.warning("Shortage alert for product %s was not delivered", product_id)


def list_notifications(user_id: int) -> list[AINotification]:
    return (
        db.session.query(AINotification)
        .filter_by(user_id=user_id)
        .order_by(AINotification.created_at.desc(), AINotification.id.desc())
        .all()
    )


def _get_owned(notification_id: int, user_id: int) -> AINotification:
    notification = db.session.query(AINotification).filter_by(id=notification_id, user_id=user_id).first()
    if notification is None:
        raise NotFoundError("Notification not found or unauthorized")
    return notification


def _set_status(notification_id: int, user_id: int, status: NotificationStatus) -> AINotification:
    notification = _get_owned(notification_id, user_id)
    row = get_status_row(db.session, StatusKind.AI_NOTIFICATION, status)
    notification.status_id = row.id
    notification.status = row
    db.session.commit()
    return notification


def mark_as_read(notification_id: int, user_id: int) -> AINotification:
    return _set_status(notification_id, user_id, NotificationStatus.READ)


def dismiss(notification_id: int, user_id: int) -> AINotification:
    return _set_status(notification_id, user_id, NotificationStatus.DISMISSED)


def delete_notification(notification_id: int, user_id: int) -> None:
    notification = _get_owned(notification_id, user_id)
    db.session.delete(notification)
    db.session.commit()
