# storefront/domain/schemas.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List
from datetime import datetime


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0)


class ItemQuantityIn(BaseModel):
    """Setting an item's quantity; 0 or less removes it."""

    quantity: int


class CartItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: int | None = None
    available: bool = True


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total_items: int
    total_amount: int
    subtotal: int
    shipping_fee: int
    grand_total: int


class ShippingAddressIn(BaseModel):
    """
    Fields are optional at the schema level so that the order workflow can
    report every missing one at once.
    """

    recipient_name: str | None = None
    recipient_phone: str | None = None
    address: str | None = None

    @field_validator("recipient_name", "recipient_phone", "address")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class PaymentReferenceIn(BaseModel):
    """Gateway callback data; accepts PortOne's own field names too."""

    gateway_transaction_id: str | None = Field(
        None, validation_alias=AliasChoices("gateway_transaction_id", "imp_uid")
    )
    merchant_order_id: str | None = Field(
        None, validation_alias=AliasChoices("merchant_order_id", "merchant_uid")
    )
    paid_amount: int | None = Field(
        None, ge=0, validation_alias=AliasChoices("paid_amount", "paidAmount")
    )
    pay_method: str | None = Field(
        None, validation_alias=AliasChoices("pay_method", "payMethod")
    )

    @field_validator("gateway_transaction_id", "merchant_order_id", "pay_method")
    @classmethod
    def strip_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v or None


class OrderCreate(BaseModel):
    shipping_address: ShippingAddressIn | None = None
    payment_method: str | None = None
    notes: str | None = None
    payment_data: PaymentReferenceIn | None = None


class StatusUpdateIn(BaseModel):
    status: str


class PriceBreakdownOut(BaseModel):
    subtotal: int
    shipping_fee: int
    grand_total: int


class CheckoutSummaryOut(PriceBreakdownOut):
    items: List[CartItemOut]


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: int

    model_config = ConfigDict(from_attributes=True)


class ShippingAddressOut(BaseModel):
    recipient_name: str
    recipient_phone: str
    address: str


class PaymentReferenceOut(BaseModel):
    gateway_transaction_id: str | None = None
    merchant_order_id: str | None = None
    paid_amount: int | None = None
    pay_method: str | None = None


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    items: List[OrderItemOut]
    shipping_fee: int
    total_amount: int
    shipping_address: ShippingAddressOut
    status: str
    payment_method: str
    payment_reference: PaymentReferenceOut | None = None
    notes: str
    created_at: datetime
    updated_at: datetime
