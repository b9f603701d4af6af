from marshmallow import EXCLUDE, fields, validate

from marketplace.extensions import ma


class ManufacturerRequestSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    message = fields.String(allow_none=True)
    proposed_lead_time = fields.Integer(
        data_key="proposedLeadTime", required=True, validate=validate.Range(min=1)
    )
    technology_match = fields.Boolean(data_key="technologyMatch")
    material_match = fields.Boolean(data_key="materialMatch")


class ArbitrationSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    manufacturer_request_id = fields.String(data_key="manufacturerRequestId", required=True)
    rejection_reason = fields.String(data_key="rejectionReason", allow_none=True)


class InvitationSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    rfq_id = fields.String(data_key="rfqId", required=True)
    manufacturer_id = fields.String(data_key="manufacturerId", required=True)
    message = fields.String(allow_none=True)


class DeclineSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    decline_reason = fields.String(data_key="declineReason", allow_none=True)
