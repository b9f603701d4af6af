from marketplace.extensions import db
from marketplace.utils.dates import iso, utcnow
import uuid

DRAFT = "DRAFT"
OPEN_FOR_REQUESTS = "OPEN_FOR_REQUESTS"
REQUESTS_PENDING = "REQUESTS_PENDING"
SUPPLIER_SELECTED = "SUPPLIER_SELECTED"
IN_PRODUCTION = "IN_PRODUCTION"
SHIPPED = "SHIPPED"
DELIVERED = "DELIVERED"
CLOSED = "CLOSED"
EXPIRED = "EXPIRED"
CANCELLED = "CANCELLED"

RFQ_STATUSES = (
    DRAFT, OPEN_FOR_REQUESTS, REQUESTS_PENDING, SUPPLIER_SELECTED,
    IN_PRODUCTION, SHIPPED, DELIVERED, CLOSED, EXPIRED, CANCELLED,
)

PRODUCTION_STATUSES = ("NOT_STARTED", "QUALITY_CHECK", "READY_TO_SHIP", "SHIPPED")


def gen_rfq_id():
    return f"RFQ-{uuid.uuid4().hex[:10]}"


class RFQ(db.Model):
    __tablename__ = "rfqs"

    __table_args__ = (
        db.Index("idx_rfqs_buyer_status", "buyer_id", "status"),
        db.Index("idx_rfqs_status_created_at", "status", "created_at"),
        db.Index("idx_rfqs_country_region", "country", "region"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_rfq_id)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)

    buyer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(30), nullable=False, default=DRAFT)

    # Requirements
    preferred_currency = db.Column(db.String(10), default="USD")
    rfq_deadline = db.Column(db.DateTime(timezone=True), nullable=False)
    acceptance_deadline = db.Column(db.DateTime(timezone=True))
    target_delivery_date = db.Column(db.DateTime(timezone=True))
    part_tracking_id = db.Column(db.String(100))
    request_justification = db.Column(db.Text)
    shipping_terms = db.Column(db.String(10), default="FOB")
    country = db.Column(db.String(100), nullable=False)
    region = db.Column(db.String(100))
    communication_language = db.Column(db.String(50), default="English")
    required_certificates = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text)
    nda_file = db.Column(db.String(1024))

    selected_manufacturer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=True)
    selected_manufacturer_request_id = db.Column(db.String(50), nullable=True)

    # Production & logistics
    production_status = db.Column(db.String(30), default="NOT_STARTED")
    tracking_info = db.Column(db.JSON, nullable=True)
    shipping_docs = db.Column(db.JSON, default=list)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    closed_at = db.Column(db.DateTime(timezone=True))

    workpieces = db.relationship(
        "Workpiece",
        order_by="Workpiece.position",
        cascade="all, delete-orphan",
        lazy=True
    )

    buyer = db.relationship("User", foreign_keys=[buyer_id], lazy=True)
    selected_manufacturer = db.relationship("User", foreign_keys=[selected_manufacturer_id], lazy=True)

    @property
    def first_workpiece(self):
        return self.workpieces[0] if self.workpieces else None

    def to_dict(self, viewer=None):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "buyerId": self.buyer_id,
            "buyer": {
                "id": self.buyer.id,
                "fullName": self.buyer.full_name,
                "companyName": self.buyer.company_name,
                "country": self.buyer.country,
                "region": self.buyer.region,
                "industryVertical": self.buyer.industry_vertical,
            } if self.buyer else None,
            "status": self.status,
            "workpieces": [w.to_dict() for w in self.workpieces],
            "preferredCurrency": self.preferred_currency,
            "rfqDeadline": iso(self.rfq_deadline),
            "acceptanceDeadline": iso(self.acceptance_deadline),
            "targetDeliveryDate": iso(self.target_delivery_date),
            "partTrackingId": self.part_tracking_id,
            "requestJustification": self.request_justification,
            "shippingTerms": self.shipping_terms,
            "country": self.country,
            "region": self.region,
            "communicationLanguage": self.communication_language,
            "requiredCertificates": self.required_certificates or [],
            "notes": self.notes,
            "selectedManufacturerId": self.selected_manufacturer_id,
            "selectedManufacturerRequestId": self.selected_manufacturer_request_id,
            "selectedManufacturer": {
                "id": self.selected_manufacturer.id,
                "fullName": self.selected_manufacturer.full_name,
                "companyName": self.selected_manufacturer.company_name,
                "country": self.selected_manufacturer.country,
                "region": self.selected_manufacturer.region,
            } if self.selected_manufacturer else None,
            "productionStatus": self.production_status,
            "trackingInfo": self.tracking_info,
            "shippingDocs": self.shipping_docs or [],
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
            "closedAt": iso(self.closed_at),
        }

        # NDA is only for the buyer and the selected manufacturer
        if viewer is not None and viewer.id in (self.buyer_id, self.selected_manufacturer_id):
            data["ndaFile"] = self.nda_file

        return data
