from marshmallow import EXCLUDE, Schema, fields, post_load, validate

from storefront.models.product import Product, ProductVariant


class IdentifierField(fields.Field):
    """Catalogue ids arrive as ints or strings; both are kept as sent"""

    default_error_messages = {"invalid": "Not a valid identifier."}

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise self.make_error("invalid")
        if isinstance(value, str) and not value.strip():
            raise self.make_error("invalid")
        return value


class CreateReservationSchema(Schema):
    variant_id = IdentifierField(required=True, data_key="variantId")
    product_id = IdentifierField(required=True, data_key="productId")
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    session_id = fields.Str(load_default=None, allow_none=True, data_key="sessionId")


class CreateNotificationSchema(Schema):
    product_id = IdentifierField(required=True, data_key="productId")
    variant_id = IdentifierField(load_default=None, allow_none=True, data_key="variantId")
    email = fields.Str(required=True)


class VariantSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = IdentifierField(required=True)
    value = fields.Str(load_default="")
    sku = fields.Str(load_default="", allow_none=True)
    type = fields.Str(load_default="size")
    stock_quantity = fields.Int(load_default=None, allow_none=True, data_key="stockQuantity")

    @post_load
    def make_variant(self, data, **kwargs):
        data["sku"] = data.get("sku") or ""
        return ProductVariant(**data)


class ProductSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = IdentifierField(required=True)
    name = fields.Str(required=True)
    sku = fields.Str(load_default="", allow_none=True)
    variants = fields.List(fields.Nested(VariantSchema), load_default=list)

    @post_load
    def make_product(self, data, **kwargs):
        data["sku"] = data.get("sku") or ""
        return Product(**data)


class LowStockAlertSchema(Schema):
    products = fields.List(fields.Nested(ProductSchema), load_default=None, allow_none=True)
    product = fields.Nested(ProductSchema, load_default=None, allow_none=True)
    variant = fields.Nested(VariantSchema, load_default=None, allow_none=True)
    threshold = fields.Int(load_default=None, allow_none=True, validate=validate.Range(min=0))
