from marshmallow import Schema, fields, validate

from models.schemas.common import FlexibleDateTime


class AppointmentRequestSchema(Schema):
    start_time = FlexibleDateTime(required=True)
    message = fields.String(allow_none=True, validate=validate.Length(max=1000))
    is_online = fields.Boolean(load_default=True)


class AppointmentOutSchema(Schema):
    id = fields.String()
    code = fields.String()
    status = fields.Function(lambda obj: obj.status.value if obj.status else None)
    start_time = FlexibleDateTime()
    is_online = fields.Boolean()
