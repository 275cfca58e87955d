from marshmallow import Schema, fields, validate, EXCLUDE


class RefreshTokenRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class TokenPairOutSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    expires_in = fields.Integer()
