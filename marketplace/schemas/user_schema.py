from marshmallow import EXCLUDE, fields, validate, validates_schema, ValidationError
import re

from marketplace.extensions import ma
from marketplace.models.user import CERTIFICATIONS, ROLES, TECHNOLOGIES, MANUFACTURER, HYBRID

PASSWORD_RULES = (
    (r"[A-Z]", "Password must contain at least one uppercase letter"),
    (r"[a-z]", "Password must contain at least one lowercase letter"),
    (r"\d", "Password must contain at least one number"),
    (r"[!@#$%^&*(),.?\":{}|<>]", "Password must contain at least one special character"),
)


class MaxDimensionsSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    length = fields.Float(load_default=0, validate=validate.Range(min=0))
    width = fields.Float(load_default=0, validate=validate.Range(min=0))
    height = fields.Float(load_default=0, validate=validate.Range(min=0))


class CapabilitySchema(ma.Schema):
    """Manufacturer capability fields shared by registration and profile edits."""

    class Meta:
        unknown = EXCLUDE

    manufacturing_types = fields.List(
        fields.String(validate=validate.OneOf(TECHNOLOGIES)), data_key="manufacturingTypes"
    )
    primary_materials = fields.List(fields.String(), data_key="primaryMaterials")
    certifications = fields.List(fields.String(validate=validate.OneOf(CERTIFICATIONS)))
    max_dimensions = fields.Nested(MaxDimensionsSchema, data_key="maxDimensions")
    company_size = fields.String(data_key="companySize", allow_none=True)
    years_in_business = fields.Integer(data_key="yearsInBusiness", validate=validate.Range(min=0))


class RegisterSchema(CapabilitySchema):
    full_name = fields.String(data_key="fullName", required=True, validate=validate.Length(min=1))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=8))
    confirm_password = fields.String(data_key="confirmPassword", required=True, load_only=True)
    role = fields.String(data_key="userType", required=True, validate=validate.OneOf(ROLES))
    phone_number = fields.String(data_key="phoneNumber", required=True)
    company_name = fields.String(data_key="companyName", required=True, validate=validate.Length(min=1))
    website = fields.String(allow_none=True)
    address = fields.String(required=True)
    city = fields.String(required=True)
    state = fields.String(required=True)
    zip_code = fields.String(data_key="zipCode", required=True)
    country = fields.String(load_default="India")
    region = fields.String(allow_none=True)
    industry_vertical = fields.String(data_key="industryVertical", allow_none=True)

    @validates_schema
    def check_password(self, data, **kwargs):
        password = data.get("password") or ""
        for pattern, message in PASSWORD_RULES:
            if not re.search(pattern, password):
                raise ValidationError(message, field_name="password")
        if password != data.get("confirm_password"):
            raise ValidationError("Passwords do not match", field_name="confirmPassword")

    @validates_schema
    def check_capabilities(self, data, **kwargs):
        if data.get("role") in (MANUFACTURER, HYBRID) and not data.get("manufacturing_types"):
            raise ValidationError(
                "At least one manufacturing type must be selected",
                field_name="manufacturingTypes",
            )


class BuyerSettingsSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    defaultCountry = fields.String()
    defaultRegion = fields.String()
    preferredCurrency = fields.String()
    defaultIncoterms = fields.String()
    communicationLanguage = fields.String()


class ManufacturerSettingsSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    technologies = fields.List(fields.String(validate=validate.OneOf(TECHNOLOGIES)))
    materials = fields.List(fields.String())
    partTypes = fields.List(fields.String())
    machinery = fields.List(fields.String())
    regionsServed = fields.List(fields.String())
    languages = fields.List(fields.String())


class ProfileUpdateSchema(CapabilitySchema):
    full_name = fields.String(data_key="fullName", validate=validate.Length(min=1))
    company_name = fields.String(data_key="companyName", validate=validate.Length(min=1))
    website = fields.String(allow_none=True)
    phone_number = fields.String(data_key="phoneNumber")
    address = fields.String()
    city = fields.String()
    state = fields.String()
    zip_code = fields.String(data_key="zipCode")
    country = fields.String()
    region = fields.String(allow_none=True)
    industry_vertical = fields.String(data_key="industryVertical", allow_none=True)
    buyer_settings = fields.Nested(BuyerSettingsSchema, data_key="buyerSettings")
    manufacturer_settings = fields.Nested(ManufacturerSettingsSchema, data_key="manufacturerSettings")
    regions_served = fields.List(fields.String(), data_key="regionsServed")
    languages = fields.List(fields.String())
