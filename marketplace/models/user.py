from marketplace.extensions import db
from marketplace.utils.dates import iso, utcnow
import uuid

BUYER = "BUYER"
MANUFACTURER = "MANUFACTURER"
HYBRID = "HYBRID"
ROLES = (BUYER, MANUFACTURER, HYBRID)

TECHNOLOGIES = (
    "CNC", "TURNING", "MILLING", "3D_PRINTING", "SHEET_METAL", "DIE_CASTING",
    "INJECTION_MOLDING", "STAMPING", "WELDING", "ASSEMBLY", "OTHER",
)
CERTIFICATIONS = ("ISO_9001", "ISO_13485", "AS9100", "IATF_16949", "ROHS", "OTHER")


def gen_uuid(prefix=None):
    uid = str(uuid.uuid4())
    return f"{prefix}-{uid}" if prefix else uid


def default_buyer_settings():
    return {
        "defaultCountry": "",
        "defaultRegion": "",
        "preferredCurrency": "USD",
        "defaultIncoterms": "FOB",
        "communicationLanguage": "English",
    }


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        db.Index("idx_users_role_manufacturer_status", "role", "manufacturer_status"),
    )

    id = db.Column(db.String(50), primary_key=True, default=lambda: gen_uuid("usr"))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False)
    phone_number = db.Column(db.String(30))
    website = db.Column(db.String(255))

    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    zip_code = db.Column(db.String(20))
    country = db.Column(db.String(100))
    region = db.Column(db.String(100))

    is_verified = db.Column(db.Boolean, default=False)
    status = db.Column(db.String(30), default="PENDING_VERIFICATION")
    manufacturer_status = db.Column(db.String(30), nullable=True)

    # Capability profile
    manufacturing_types = db.Column(db.JSON, default=list)
    primary_materials = db.Column(db.JSON, default=list)
    certifications = db.Column(db.JSON, default=list)
    max_dimensions = db.Column(db.JSON, default=dict)
    part_types = db.Column(db.JSON, default=list)
    machinery = db.Column(db.JSON, default=list)
    regions_served = db.Column(db.JSON, default=list)
    languages = db.Column(db.JSON, default=list)
    company_size = db.Column(db.String(50))
    years_in_business = db.Column(db.Integer, default=0)

    industry_vertical = db.Column(db.String(100))
    buyer_settings = db.Column(db.JSON, default=default_buyer_settings)

    rating = db.Column(db.Float, default=0.0)
    completed_orders = db.Column(db.Integer, default=0)
    profile_completeness = db.Column(db.Integer, default=0)

    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def is_buyer(self):
        return self.role in (BUYER, HYBRID)

    @property
    def is_manufacturer(self):
        return self.role in (MANUFACTURER, HYBRID)

    def manufacturer_settings(self):
        return {
            "technologies": self.manufacturing_types or [],
            "materials": self.primary_materials or [],
            "partTypes": self.part_types or [],
            "machinery": self.machinery or [],
            "regionsServed": self.regions_served or [],
            "languages": self.languages or [],
        }

    def to_public_dict(self):
        data = {
            "id": self.id,
            "fullName": self.full_name,
            "companyName": self.company_name,
            "userType": self.role,
            "country": self.country,
            "region": self.region,
        }
        if self.is_manufacturer:
            data.update({
                "manufacturingTypes": self.manufacturing_types or [],
                "primaryMaterials": self.primary_materials or [],
                "certifications": self.certifications or [],
                "maxDimensions": self.max_dimensions or {},
                "companySize": self.company_size,
                "yearsInBusiness": self.years_in_business,
                "manufacturerSettings": self.manufacturer_settings(),
                "manufacturerStatus": self.manufacturer_status,
                "rating": self.rating,
                "completedOrders": self.completed_orders,
            })
        return data

    def to_dict(self):
        data = self.to_public_dict()
        data.update({
            "email": self.email,
            "phoneNumber": self.phone_number,
            "website": self.website,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "industryVertical": self.industry_vertical,
            "buyerSettings": self.buyer_settings or default_buyer_settings(),
            "isEmailVerified": self.is_verified,
            "status": self.status,
            "profileCompleteness": self.profile_completeness,
            "joinedAt": iso(self.joined_at),
        })
        return data
