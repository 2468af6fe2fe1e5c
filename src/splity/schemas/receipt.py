"""Pydantic schemas for receipt upload and OCR results."""
from datetime import date
from uuid import UUID

from pydantic import Field

from splity.schemas.base import ApiModel


class ReceiptItem(ApiModel):
    """A priced line read from a receipt."""

    description: str | None = None
    total_price: float
    quantity: float = 1

    @property
    def single_item_price(self) -> float:
        """Price of one unit."""
        return self.total_price / self.quantity if self.quantity else self.total_price


class Receipt(ApiModel):
    """Fields extracted from a receipt image."""

    merchant_name: str | None = None
    transaction_date: date | None = None
    items: list[ReceiptItem] = Field(default_factory=list)


class ReceiptUploadResponse(ApiModel):
    """Result of uploading and analyzing a receipt."""

    file_url: str
    bill_id: UUID
    receipt: Receipt
