from marketplace.extensions import db
from marketplace.utils.dates import iso, utcnow
import uuid

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"
WITHDRAWN = "WITHDRAWN"


def gen_request_id():
    return f"MRQ-{uuid.uuid4().hex[:10]}"


class ManufacturerRequest(db.Model):
    __tablename__ = "manufacturer_requests"

    __table_args__ = (
        db.UniqueConstraint("rfq_id", "manufacturer_id", name="uq_request_rfq_manufacturer"),
        db.Index("idx_requests_manufacturer_status", "manufacturer_id", "status"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_request_id)
    rfq_id = db.Column(db.String(50), db.ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    manufacturer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PENDING)
    message = db.Column(db.Text)
    proposed_lead_time = db.Column(db.Integer, nullable=False)
    technology_match = db.Column(db.Boolean, default=False)
    material_match = db.Column(db.Boolean, default=False)
    match_score = db.Column(db.Integer, default=0)

    requested_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    responded_at = db.Column(db.DateTime(timezone=True))
    rejection_reason = db.Column(db.Text)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref("manufacturer_requests", lazy=True, cascade="all, delete-orphan")
    )
    manufacturer = db.relationship("User", lazy=True)

    def to_dict(self, include_manufacturer=False):
        data = {
            "id": self.id,
            "rfqId": self.rfq_id,
            "manufacturerId": self.manufacturer_id,
            "status": self.status,
            "message": self.message,
            "proposedLeadTime": self.proposed_lead_time,
            "technologyMatch": self.technology_match,
            "materialMatch": self.material_match,
            "matchScore": self.match_score,
            "requestedAt": iso(self.requested_at),
            "respondedAt": iso(self.responded_at),
            "rejectionReason": self.rejection_reason,
        }
        if include_manufacturer and self.manufacturer:
            data["manufacturer"] = self.manufacturer.to_public_dict()
        return data
