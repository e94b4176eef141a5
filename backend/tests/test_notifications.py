# Overview: Pytest coverage for AI shortage notifications and the alert email.

import threading

import pytest

from stockroom.exceptions import NotFoundError, ValidationError
from stockroom.services import email_service, notification_service


@pytest.fixture
def sent(monkeypatch):
    outbox = []

    def fake_send(to, subject, html):
        outbox.append((to, subject, html))
        return True

    monkeypatch.setattr(email_service, "send_email", fake_send)
    return outbox


class TestCreateNotification:
    def test_owner_comes_from_product(self, db_session, tenant_a, sent):
        product = tenant_a["product"]
        notification = notification_service.create_notification(
            product_id=product.id,
            message="Stock runs out in 4 days",
            forecast=[{"date": "2026-01-01", "quantity": 3}],
            shortage_date="2026-01-04",
        )

        assert notification.user_id == tenant_a["user"].id
        assert notification.to_dict()["status"] == "new"
        assert notification.prediction_details["shortage_date"] == "2026-01-04"
        assert sent == []

    def test_plan_triggers_alert_email(self, db_session, tenant_a, sent):
        notification_service.create_notification(
            product_id=tenant_a["product"].id,
            message="Short next week",
            forecast=[],
            replenishment_plan="Order 20 <units>",
        )

        [(to, subject, html)] = sent
        assert to == "owner_a@example.com"
        assert "shortage" in subject.lower()
        assert "Order 20 &lt;units&gt;" in html

    def test_blank_plan_sends_nothing(self, db_session, tenant_a, sent):
        notification_service.create_notification(
            product_id=tenant_a["product"].id, message="m", forecast=[], replenishment_plan="   "
        )
        assert sent == []

    def test_email_failure_does_not_fail_creation(self, db_session, tenant_a, monkeypatch):
        def broken(to, subject, html):
            raise RuntimeError("smtp down")

        monkeypatch.setattr(email_service, "send_email", broken)
        notification = notification_service.create_notification(
            product_id=tenant_a["product"].id, message="m", forecast=[], replenishment_plan="Buy more"
        )
        assert notification.id is not None

    def test_background_dispatch_does_not_block_creation(self, app, db_session, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "ALERT_EMAIL_IN_BACKGROUND", True)
        release = threading.Event()
        delivered = threading.Event()
        outbox = []

        def slow_send(to, subject, html):
            release.wait(timeout=5)
            outbox.append(to)
            delivered.set()
            return True

        monkeypatch.setattr(email_service, "send_email", slow_send)
        notification = notification_service.create_notification(
            product_id=tenant_a["product"].id, message="m", forecast=[], replenishment_plan="Buy more"
        )

        assert notification.id is not None
        assert outbox == []
        release.set()
        assert delivered.wait(timeout=5)
        assert outbox == ["owner_a@example.com"]

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            notification_service.create_notification(product_id=999, message="m", forecast=[])

    def test_forecast_must_be_list(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            notification_service.create_notification(
                product_id=tenant_a["product"].id, message="m", forecast="soon"
            )


class TestNotificationLifecycle:
    def _create(self, tenant):
        return notification_service.create_notification(
            product_id=tenant["product"].id, message="m", forecast=[]
        ).id

    def test_read_dismiss_delete(self, db_session, tenant_a):
        user_id = tenant_a["user"].id
        notification_id = self._create(tenant_a)

        assert notification_service.mark_as_read(notification_id, user_id).to_dict()["status"] == "read"
        assert notification_service.dismiss(notification_id, user_id).to_dict()["status"] == "dismissed"

        notification_service.delete_notification(notification_id, user_id)
        assert notification_service.list_notifications(user_id) == []

    def test_other_user_cannot_act(self, db_session, tenant_a, tenant_b):
        notification_id = self._create(tenant_a)
        with pytest.raises(NotFoundError):
            notification_service.mark_as_read(notification_id, tenant_b["user"].id)
        with pytest.raises(NotFoundError):
            notification_service.delete_notification(notification_id, tenant_b["user"].id)
        assert notification_service.list_notifications(tenant_b["user"].id) == []
