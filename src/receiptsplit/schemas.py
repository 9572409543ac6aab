"""Boundary schema for receipts returned by the extraction model."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CURRENCY = "USD"
MAX_PCT = 0.5


class ExtractedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    qty: int = Field(1, ge=1, alias="quantity")
    price: float = Field(0.0, ge=0, alias="unitPrice")


class ExtractedReceipt(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    merchant: Optional[str] = None
    date: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    items: list[ExtractedItem] = Field(..., min_length=1)
    tax_pct: Optional[float] = Field(None, ge=0, le=MAX_PCT, alias="taxPct")
    tip_pct: Optional[float] = Field(None, ge=0, le=MAX_PCT, alias="tipPct")
