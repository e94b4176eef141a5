from __future__ import annotations

from ..extensions import db


class StatusCategory(db.Model):
    """
    Status taxonomy root: one category per document kind
    (sales_order, purchase_order, sales_return, purchase_return, ai_notification).
    """
    __tablename__ = "status_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)

    status_types = db.relationship(
        "StatusType",
        backref="category",
        lazy=True,
        order_by="StatusType.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status_types": [t.to_dict() for t in self.status_types],
        }


class StatusType(db.Model):
    """A named status within one category. Names are unique per category."""
    __tablename__ = "status_types"
    __table_args__ = (
        db.UniqueConstraint("category_id", "name", name="uq_status_types_category_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("status_categories.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<StatusType id={self.id} name={self.name!r} category_id={self.category_id}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


class TransactionType(db.Model):
    """
    Catalogue of ledger entry causes. Ids are fixed and mirrored by
    services.ledger_service.TxType; seeded by `flask system init`.
    """
    __tablename__ = "transaction_types"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}
