"""Target table and row schema for the product catalog import."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator
from sqlmodel import Field, SQLModel

from sqlmodel_importer import ImportMetadata


class Product(ImportMetadata, SQLModel, table=True):
    sku: str = Field(primary_key=True, max_length=32)
    name: str
    category: Optional[str] = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    in_stock: bool = True


class ProductRow(BaseModel):
    """Validated shape of one catalog row, independent of the ORM model."""

    model_config = ConfigDict(extra="ignore")

    sku: str = PydanticField(min_length=1, max_length=32)
    name: str
    category: Optional[str] = None
    price: Decimal = PydanticField(ge=0, decimal_places=2)
    in_stock: bool = True

    @field_validator("sku")
    @classmethod
    def normalise_sku(cls, value: str) -> str:
        return value.upper()
