from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AINotification(db.Model):
    """
    Shortage warning pushed by the forecasting service.

    prediction_details holds shortage_date, the forecast series and an
    optional replenishment plan. Status lives in the ai_notification
    status category (new, read, dismissed).
    """
    __tablename__ = "ai_inventory_notifications"
    __table_args__ = (
        db.Index("ix_ai_notifications_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    status_id = db.Column(db.Integer, db.ForeignKey("status_types.id"), nullable=False)

    message = db.Column(db.Text, nullable=False)
    prediction_details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")
    status = db.relationship("StatusType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "status_id": self.status_id,
            "status": self.status.name if self.status else None,
            "message": self.message,
            "prediction_details": self.prediction_details,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
