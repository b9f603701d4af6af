from marketplace.extensions import db
from marketplace.models.user import User
from marketplace.utils.exceptions import NotFound

CONTACT_FIELDS = ("company_name", "address", "city", "state", "zip_code", "country")

EDITABLE_FIELDS = CONTACT_FIELDS + (
    "full_name", "website", "phone_number", "region", "industry_vertical",
    "manufacturing_types", "primary_materials", "certifications",
    "max_dimensions", "company_size", "years_in_business",
    "regions_served", "languages",
)

# manufacturerSettings keys -> User columns
SETTINGS_COLUMNS = {
    "technologies": "manufacturing_types",
    "materials": "primary_materials",
    "partTypes": "part_types",
    "machinery": "machinery",
    "regionsServed": "regions_served",
    "languages": "languages",
}


def recompute_completeness(user):
    score = 5 * sum(1 for field in CONTACT_FIELDS if getattr(user, field))

    if user.is_buyer:
        settings = user.buyer_settings or {}
        if settings.get("preferredCurrency"):
            score += 5
        if settings.get("defaultCountry"):
            score += 5

    if user.is_manufacturer:
        for values in (user.manufacturing_types, user.primary_materials, user.certifications):
            if values:
                score += 10
        dims = user.max_dimensions or {}
        if (dims.get("length") or 0) > 0 or (dims.get("width") or 0) > 0:
            score += 10

    user.profile_completeness = min(score, 100)
    return user.profile_completeness


def update_profile(user, data) -> User:
    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(user, field, data[field])

    if "buyer_settings" in data:
        # merge so a partial settings object keeps the other defaults
        user.buyer_settings = {**(user.buyer_settings or {}), **data["buyer_settings"]}

    for key, column in SETTINGS_COLUMNS.items():
        if key in (data.get("manufacturer_settings") or {}):
            setattr(user, column, data["manufacturer_settings"][key])

    recompute_completeness(user)
    db.session.commit()
    return user


def public_profile(user_id) -> dict:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user.to_public_dict()
