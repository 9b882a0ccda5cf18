from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

CENT = Decimal("0.01")


def quantize_price(value: Decimal) -> Decimal:
    """Round a price to two fractional digits (half-up), as the column stores it."""
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Price {value} has too many digits")


Price = Annotated[Decimal, AfterValidator(quantize_price)]


class ProductCreate(BaseModel):
    """Schema for creating a new product."""
    name: str = Field(..., description="Product name")
    price: Price = Field(default=Decimal("0.00"), description="Product price, defaults to 0.00")


class ProductUpdate(BaseModel):
    """
    Schema for updating an existing product. All fields are optional;
    fields left out of the payload (or sent as null) keep their stored value.
    """
    name: Optional[str] = Field(None, description="Product name")
    price: Optional[Price] = Field(None, description="Product price")

    def changes(self) -> dict:
        """Fields the client actually supplied, without nulls."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class ProductResponse(BaseModel):
    """Schema for product response."""
    id: int
    name: str
    price: float

    model_config = ConfigDict(from_attributes=True)
