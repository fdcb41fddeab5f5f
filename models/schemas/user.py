from marshmallow import Schema, fields, pre_load, validate

from models.user import UserRole, normalize_email


class UserCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=255))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=6))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = normalize_email(data["email"])
            if isinstance(data.get("name"), str):
                data["name"] = data["name"].strip()
        return data


class UserLoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = normalize_email(data["email"])
        return data


class UserRoleSchema(Schema):
    role = fields.Enum(UserRole, by_value=True, required=True)


class UserOutSchema(Schema):
    """Public-safe user fields; never includes the password hash."""
    id = fields.String(allow_none=False)
    name = fields.String()
    email = fields.String()
    role = fields.Enum(UserRole, by_value=True)


class UserProfileSchema(UserOutSchema):
    is_active = fields.Boolean()
    created_at = fields.DateTime()
