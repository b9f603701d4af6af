from marketplace.extensions import db
from marketplace.utils.dates import iso, utcnow
import uuid

RATING_CATEGORIES = ("quality", "onTimeDelivery", "communication", "price")


def gen_rating_id():
    return f"rat-{str(uuid.uuid4())[:8]}"


class Rating(db.Model):
    __tablename__ = "ratings"

    __table_args__ = (
        db.Index("idx_ratings_manufacturer_id", "manufacturer_id"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_rating_id)

    rfq_id = db.Column(
        db.String(50),
        db.ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    buyer_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )

    manufacturer_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )

    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    categories = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref("rating", uselist=False)
    )

    buyer = db.relationship("User", foreign_keys=[buyer_id])
    manufacturer = db.relationship("User", foreign_keys=[manufacturer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "rfqId": self.rfq_id,
            "rfqTitle": self.rfq.title if self.rfq else None,
            "buyerId": self.buyer_id,
            "buyer": {
                "fullName": self.buyer.full_name,
                "companyName": self.buyer.company_name,
            } if self.buyer else None,
            "manufacturerId": self.manufacturer_id,
            "rating": self.rating,
            "comment": self.comment,
            "categories": self.categories or {},
            "createdAt": iso(self.created_at),
        }
