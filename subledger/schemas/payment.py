"""Billing-key payment schemas."""

from pydantic import BaseModel, ConfigDict, Field


class CustomerRef(BaseModel):
    id: str = Field(..., min_length=1)


class BillingKeyPaymentCreate(BaseModel):
    """Schema for charging a stored billing key."""

    model_config = ConfigDict(populate_by_name=True)

    billing_key: str = Field(..., min_length=1, alias="billingKey")
    order_name: str = Field(..., min_length=1, alias="orderName")
    amount: int = Field(..., gt=0, description="Charge total in minor currency units")
    customer: CustomerRef


class BillingKeyPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    payment_id: str = Field(..., alias="paymentId")
