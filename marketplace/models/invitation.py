from marketplace.extensions import db
from marketplace.utils.dates import iso, utcnow
import uuid

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
DECLINED = "DECLINED"


class Invitation(db.Model):
    __tablename__ = "invitations"

    __table_args__ = (
        db.UniqueConstraint("rfq_id", "manufacturer_id", name="uq_invitation_rfq_manufacturer"),
        db.Index("idx_invitations_manufacturer_status", "manufacturer_id", "status"),
    )

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"INV-{uuid.uuid4().hex[:10]}")
    rfq_id = db.Column(db.String(50), db.ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    buyer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    manufacturer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PENDING)
    message = db.Column(db.Text)
    invited_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    responded_at = db.Column(db.DateTime(timezone=True))
    decline_reason = db.Column(db.Text)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref("invitations", lazy=True, cascade="all, delete-orphan")
    )
    buyer = db.relationship("User", foreign_keys=[buyer_id], lazy=True)
    manufacturer = db.relationship("User", foreign_keys=[manufacturer_id], lazy=True)

    def to_dict(self):
        rfq = self.rfq
        return {
            "id": self.id,
            "rfqId": self.rfq_id,
            "buyerId": self.buyer_id,
            "manufacturerId": self.manufacturer_id,
            "status": self.status,
            "message": self.message,
            "invitedAt": iso(self.invited_at),
            "respondedAt": iso(self.responded_at),
            "declineReason": self.decline_reason,
            "rfq": {
                "id": rfq.id,
                "title": rfq.title,
                "status": rfq.status,
                "country": rfq.country,
                "region": rfq.region,
                "workpieces": [w.to_dict() for w in rfq.workpieces],
            } if rfq else None,
            "buyer": {
                "id": self.buyer.id,
                "fullName": self.buyer.full_name,
                "companyName": self.buyer.company_name,
                "country": self.buyer.country,
                "region": self.buyer.region,
            } if self.buyer else None,
        }
