from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data and the authoritative stock level.

    MULTI-TENANT: Products are scoped to their owner via user_id.

    STOCK DESIGN DECISION:
    Product.quantity is a stored counter, not a ledger sum. It is only ever
    changed by services.stock_service through a single
    UPDATE ... WHERE id=? AND user_id=? RETURNING quantity statement, and
    every change is paired with one InventoryTransaction row.

    unit_cost_cents only ratchets upward from confirmed purchase lines.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_products_user_name"),
        db.UniqueConstraint("user_id", "barcode", name="uq_products_user_barcode"),
        db.Index("ix_products_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    barcode = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} user_id={self.user_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "quantity": self.quantity,
            "unit_cost_cents": self.unit_cost_cents,
            "unit_price_cents": self.unit_price_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryTransaction(db.Model):
    """
    Append-only stock movement.

    Rows are written in the same DB transaction as the stock change they
    describe and are never updated or deleted.
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.CheckConstraint("new_stock = previous_stock + quantity", name="ck_invtx_stock_arithmetic"),
        db.Index("ix_invtx_user_product_created", "user_id", "product_id", "created_at"),
        db.Index("ix_invtx_type_created", "transaction_type_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    transaction_type_id = db.Column(db.Integer, db.ForeignKey("transaction_types.id"), nullable=False)

    # Signed delta
    quantity = db.Column(db.Integer, nullable=False)

    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product")
    transaction_type = db.relationship("TransactionType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "transaction_type_id": self.transaction_type_id,
            "transaction_type_name": self.transaction_type.name if self.transaction_type else None,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "created_at": to_utc_z(self.created_at),
        }
