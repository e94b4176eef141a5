from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SalesReturn(db.Model):
    """
    Goods sent back by a customer against a sales order.

    Confirming (or completing) a sales return puts its quantities back
    into stock. Each product may appear once per return.
    """
    __tablename__ = "sales_returns"
    __table_args__ = (
        db.Index("ix_sales_returns_user_date", "user_id", "return_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    status_id = db.Column(db.Integer, db.ForeignKey("status_types.id"), nullable=False)

    return_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    sales_order = db.relationship("SalesOrder", backref=db.backref("returns", lazy=True))
    status = db.relationship("StatusType")
    lines = db.relationship(
        "SalesReturnLine",
        backref="sales_return",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SalesReturnLine.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "sales_order_id": self.sales_order_id,
            "status_id": self.status_id,
            "status_name": self.status.name if self.status else None,
            "return_date": to_utc_z(self.return_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class SalesReturnLine(db.Model):
    __tablename__ = "sales_return_lines"
    __table_args__ = (
        db.UniqueConstraint("sales_return_id", "product_id", name="uq_sales_return_lines_return_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_return_id = db.Column(
        db.Integer, db.ForeignKey("sales_returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    # Per-line status; defaults to the header status when the line is written
    status_id = db.Column(db.Integer, db.ForeignKey("status_types.id"), nullable=True)

    product = db.relationship("Product")
    status = db.relationship("StatusType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_return_id": self.sales_return_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "status_id": self.status_id,
            "status_name": self.status.name if self.status else None,
        }


class PurchaseReturn(db.Model):
    """
    Goods sent back to a supplier against a purchase order.

    Confirming (or completing) a purchase return takes its quantities out
    of stock, which must never go negative.
    """
    __tablename__ = "purchase_returns"
    __table_args__ = (
        db.Index("ix_purchase_returns_user_date", "user_id", "return_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    status_id = db.Column(db.Integer, db.ForeignKey("status_types.id"), nullable=False)

    return_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    purchase_order = db.relationship("PurchaseOrder", backref=db.backref("returns", lazy=True))
    status = db.relationship("StatusType")
    lines = db.relationship(
        "PurchaseReturnLine",
        backref="purchase_return",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseReturnLine.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "purchase_order_id": self.purchase_order_id,
            "status_id": self.status_id,
            "status_name": self.status.name if self.status else None,
            "return_date": to_utc_z(self.return_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class PurchaseReturnLine(db.Model):
    __tablename__ = "purchase_return_lines"
    __table_args__ = (
        db.UniqueConstraint("purchase_return_id", "product_id", name="uq_purchase_return_lines_return_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_return_id = db.Column(
        db.Integer, db.ForeignKey("purchase_returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    status_id = db.Column(db.Integer, db.ForeignKey("status_types.id"), nullable=True)

    product = db.relationship("Product")
    status = db.relationship("StatusType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_return_id": self.purchase_return_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "status_id": self.status_id,
            "status_name": self.status.name if self.status else None,
        }
