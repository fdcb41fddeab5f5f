from marshmallow import Schema, fields, validate

from models.schemas.user import UserOutSchema


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class AuthOutSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.Constant("bearer")
    expires_in = fields.Integer()
    user = fields.Nested(UserOutSchema)


class TokenOutSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.Constant("bearer")
    expires_in = fields.Integer()


class SessionOutSchema(Schema):
    """A device session as shown to its owner; the token itself is never listed."""
    id = fields.String()
    user_agent = fields.String(allow_none=True)
    ip_address = fields.String(allow_none=True)
    created_at = fields.DateTime()
    expires_at = fields.DateTime()
