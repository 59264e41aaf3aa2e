from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError

from models.user import Role

ROLE_VALUES = [r.value for r in Role]


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip_name(data):
    if isinstance(data.get("name"), str):
        data["name"] = data["name"].strip()


class UserCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=255))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    role = fields.String(load_default=Role.USER.value, validate=validate.OneOf(ROLE_VALUES))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            _strip_name(data)
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 6:
            raise ValidationError("Password must be at least 6 characters long.")


class UserLoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserUpdateSchema(Schema):
    name = fields.String(validate=validate.Length(min=2, max=255))
    email = fields.Email()
    password = fields.String(load_only=True)
    role = fields.String(validate=validate.OneOf(ROLE_VALUES))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            _strip_name(data)
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 6:
            raise ValidationError("Password must be at least 6 characters long.")


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    name = fields.String()
    email = fields.String()
    role = fields.Method("get_role")
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_role(self, obj):
        role = getattr(obj, "role", None)
        return role.value if isinstance(role, Role) else role
