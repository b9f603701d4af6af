from marshmallow import EXCLUDE, fields, validate

from marketplace.extensions import ma

_score = validate.Range(min=1, max=5)


class RatingCategoriesSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    quality = fields.Integer(validate=_score)
    onTimeDelivery = fields.Integer(validate=_score)
    communication = fields.Integer(validate=_score)
    price = fields.Integer(validate=_score)


class RatingSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    rfq_id = fields.String(data_key="rfqId", required=True)
    rating = fields.Integer(required=True, strict=True, validate=_score)
    comment = fields.String(allow_none=True)
    categories = fields.Nested(RatingCategoriesSchema, load_default=dict)
