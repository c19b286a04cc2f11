"""Pydantic schemas for copy accounting."""

from pydantic import BaseModel


class Availability(BaseModel):
    """Copy counts of one book."""

    book_id: str
    title: str
    quantity: int
    available: int
    on_loan: int


class InventoryDiscrepancy(BaseModel):
    """A book whose copy counts disagree with the loan ledger."""

    book_id: str
    title: str
    quantity: int
    available: int
    open_loans: int

    @property
    def expected_available(self) -> int:
        """Available count implied by the ledger."""
        return self.quantity - self.open_loans
