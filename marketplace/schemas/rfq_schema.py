from marshmallow import EXCLUDE, fields, validate, pre_load

from marketplace.extensions import ma
from marketplace.models.rfq import PRODUCTION_STATUSES, RFQ_STATUSES
from marketplace.models.user import CERTIFICATIONS, TECHNOLOGIES


class DimensionsSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    length = fields.Float(load_default=0, validate=validate.Range(min=0))
    width = fields.Float(load_default=0, validate=validate.Range(min=0))
    height = fields.Float(load_default=0, validate=validate.Range(min=0))
    diameter = fields.Float(load_default=0, validate=validate.Range(min=0))


class WorkpieceSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    main_file = fields.String(data_key="mainFile", required=True, validate=validate.Length(min=1))
    extra_files = fields.List(fields.String(), data_key="extraFiles", load_default=list)
    part_type = fields.String(data_key="partType", allow_none=True)
    technology = fields.String(required=True, validate=validate.OneOf(TECHNOLOGIES))
    material = fields.String(required=True, validate=validate.Length(min=1))
    quantity = fields.Integer(required=True, validate=validate.Range(min=1))
    dimensions = fields.Nested(DimensionsSchema, load_default=dict)


class RFQSchema(ma.Schema):
    """Body of ``POST /rfqs`` and ``PUT /rfqs/<id>``.

    Requirement fields may be sent flat or nested under ``requirements``.
    """

    class Meta:
        unknown = EXCLUDE

    title = fields.String(required=True, validate=validate.Length(min=1, max=255))
    description = fields.String(allow_none=True)
    status = fields.String(validate=validate.OneOf(RFQ_STATUSES))
    workpieces = fields.List(fields.Nested(WorkpieceSchema), load_default=list)

    preferred_currency = fields.String(data_key="preferredCurrency")
    rfq_deadline = fields.DateTime(data_key="rfqDeadline", required=True)
    acceptance_deadline = fields.DateTime(data_key="acceptanceDeadline", allow_none=True)
    target_delivery_date = fields.DateTime(data_key="targetDeliveryDate", allow_none=True)
    part_tracking_id = fields.String(data_key="partTrackingId", allow_none=True)
    request_justification = fields.String(data_key="requestJustification", allow_none=True)
    shipping_terms = fields.String(data_key="shippingTerms")
    country = fields.String(required=True, validate=validate.Length(min=1))
    region = fields.String(allow_none=True)
    communication_language = fields.String(data_key="communicationLanguage")
    required_certificates = fields.List(
        fields.String(validate=validate.OneOf(CERTIFICATIONS)),
        data_key="requiredCertificates",
    )
    notes = fields.String(allow_none=True)
    nda_file = fields.String(data_key="ndaFile", allow_none=True)

    @pre_load
    def flatten_requirements(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("requirements"), dict):
            data = {**data["requirements"], **{k: v for k, v in data.items() if k != "requirements"}}
        return data


class TrackingInfoSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    trackingId = fields.String(allow_none=True)
    carrier = fields.String(allow_none=True)
    shippingDate = fields.String(allow_none=True)


class ShippingDocSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    type = fields.String(required=True)
    url = fields.String(required=True)


class StatusUpdateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.String(validate=validate.OneOf(RFQ_STATUSES))
    production_status = fields.String(data_key="productionStatus", validate=validate.OneOf(PRODUCTION_STATUSES))
    tracking_info = fields.Nested(TrackingInfoSchema, data_key="trackingInfo")
    shipping_docs = fields.List(fields.Nested(ShippingDocSchema), data_key="shippingDocs")
