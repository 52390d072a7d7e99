from marshmallow import Schema, fields, validate, validates, validates_schema, ValidationError

from models.schemas.common import FlexibleDate, FlexibleDateTime, validate_not_future


class PetCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=105))
    gender = fields.Boolean(load_default=True)
    date_of_birth = FlexibleDate(required=True)
    date_of_death = FlexibleDate(allow_none=True)
    breed = fields.String(allow_none=True, validate=validate.Length(max=50))
    description = fields.String(allow_none=True, validate=validate.Length(max=255))
    type = fields.String(required=True, validate=validate.Length(min=1, max=50))

    @validates("date_of_birth")
    def _validate_date_of_birth(self, value, **kwargs):
        validate_not_future(value)

    @validates_schema
    def _validate_lifespan(self, data, **kwargs):
        born, died = data.get("date_of_birth"), data.get("date_of_death")
        if born and died and died < born:
            raise ValidationError("date_of_death cannot be before date_of_birth.", "date_of_death")


class PetOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    gender = fields.Boolean()
    date_of_birth = FlexibleDate(allow_none=True)
    date_of_death = FlexibleDate(allow_none=True)
    breed = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    type = fields.String(allow_none=True)
    avt_url = fields.String(allow_none=True)
    user_id = fields.String()


class PetLifeEventSchema(Schema):
    pet_id = fields.String(required=True)
    title = fields.String(required=True, validate=validate.Length(min=1, max=100))
    date = FlexibleDateTime(required=True)
    location = fields.String(allow_none=True, validate=validate.Length(max=255))
    story = fields.String(allow_none=True, validate=validate.Length(max=255))


class PetLifeEventOutSchema(Schema):
    id = fields.String()
    pet_id = fields.String()
    title = fields.String()
    date = FlexibleDate()


class LifeEventItemSchema(Schema):
    id = fields.String()
    title = fields.String()
    date = FlexibleDate(allow_none=True)
    location = fields.String(allow_none=True)
    story = fields.String(allow_none=True)


class MediaItemSchema(Schema):
    id = fields.String()
    url = fields.String()


class PetDetailSchema(Schema):
    id = fields.String()
    name = fields.String()
    gender = fields.Boolean()
    date_of_birth = FlexibleDate(allow_none=True)
    date_of_death = FlexibleDate(allow_none=True)
    breed = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    type = fields.String(allow_none=True)
    avt_url = fields.String(allow_none=True)
    events = fields.List(fields.Nested(LifeEventItemSchema))
    medias = fields.List(fields.Nested(MediaItemSchema))


class MediaCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=105))
    url = fields.Url(required=True)
    type = fields.String(allow_none=True, validate=validate.Length(max=50))


class GallerySchema(Schema):
    medias = fields.List(fields.Nested(MediaCreateSchema), required=True, validate=validate.Length(min=1))


class AvatarSchema(Schema):
    url = fields.Url(required=True, validate=validate.Length(max=255))
