from marshmallow import Schema, fields, validate

from models.schemas.common import FlexibleDateTime


class CommentSchema(Schema):
    content = fields.String(required=True, validate=validate.Length(min=1))
    parent_id = fields.String(allow_none=True)


class CommentOutSchema(Schema):
    id = fields.String()
    content = fields.String()
    created_at = FlexibleDateTime(allow_none=True)
    updated_at = FlexibleDateTime(allow_none=True)
    parent_id = fields.String(allow_none=True)
    user_id = fields.String(allow_none=True)
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    avatar_url = fields.String(allow_none=True)
    replies = fields.List(fields.Nested(lambda: CommentOutSchema()))
