from marshmallow import Schema, fields, pre_load, validate, validates_schema, ValidationError

def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v

class UserRegisterSchema(Schema):
    first_name = fields.String(required=True, validate=validate.Length(min=1, max=105))
    last_name = fields.String(required=True, validate=validate.Length(min=1, max=105))
    email = fields.Email(required=True)
    phone = fields.String(required=True, validate=validate.Length(min=1, max=12))
    gender = fields.Boolean(load_default=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=6))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

class ChangePasswordSchema(Schema):
    old_password = fields.String(required=True, validate=validate.Length(min=6))
    new_password = fields.String(required=True, validate=validate.Length(min=6))
    re_new_password = fields.String(required=True, validate=validate.Length(min=6))

    @validates_schema
    def validate_passwords(self, data, **kwargs):
        if data.get("new_password") != data.get("re_new_password"):
            raise ValidationError("re_new_password does not match new_password", "re_new_password")
        if data.get("old_password") == data.get("new_password"):
            raise ValidationError("new password must be different from old password", "new_password")

class RoleAssignSchema(Schema):
    roles = fields.List(fields.String(validate=validate.Length(min=1)), required=True, validate=validate.Length(min=1))

class UserOutSchema(Schema):
    id = fields.String()
    first_name = fields.String()
    last_name = fields.String()
    email = fields.String()
    phone = fields.String(allow_none=True)
    is_admin = fields.Boolean()
    avatar = fields.String(attribute="avatar_url", allow_none=True)
    # filled in by the caller from the permission resolver
    roles = fields.List(fields.String())
    permissions = fields.List(fields.String())
