"""Exceptions raised by library operations.

Every failing operation leaves books, users and loans unchanged.
"""


class LibraryError(Exception):
    """Base exception for library operations."""

    pass


class NotFoundError(LibraryError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class OutOfStockError(LibraryError):
    """Raised when a checkout finds no available copy of a book."""

    def __init__(self, book_id: str, title: str = ""):
        self.book_id = book_id
        label = f"'{title}'" if title else book_id
        super().__init__(f"No copies of {label} are available for loan")


class AlreadyReturnedError(LibraryError):
    """Raised when returning a loan that is already closed."""

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan {loan_id} has already been returned")


class InventoryError(LibraryError):
    """Raised when a copy-count change would break 0 <= available <= quantity."""

    pass


class ActiveLoansError(LibraryError):
    """Raised when open loans block a delete or a quantity change."""

    pass
