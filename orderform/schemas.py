"""Pydantic schemas for extracted order records.

``OrderRecord`` is the hand-off shape for the storage layer: flat string
header fields plus a list of line items.
"""

from pydantic import BaseModel, Field

CRITICAL_FIELDS: tuple[str, ...] = ("invoice_number", "sold_to", "order_date")


class LineItem(BaseModel):
    """One product line of an order."""

    line_number: int = 1
    description: str = ""
    manufacturer: str = ""
    size: str = ""
    style: str = ""
    color: str = ""
    pad: str = ""
    rug_pad: str = ""
    quantity: float = 1
    unit_price: float = 0.0
    amount: float = 0.0


class OrderRecord(BaseModel):
    """Structured contents of one sales-order form."""

    invoice_number: str = ""
    sold_to: str = ""
    directions: str = ""
    email: str = ""
    order_date: str = ""
    home_phone: str = ""
    cell_phone: str = ""
    installation_date: str = ""
    installed_by: str = ""
    salesperson: str = ""
    items: list[LineItem] = Field(default_factory=list)

    def missing_critical_fields(self) -> list[str]:
        """Names of critical header fields that came out empty."""
        return [name for name in CRITICAL_FIELDS if not getattr(self, name).strip()]
