"""Exceptions raised by the service layer and translated to HTTP responses in routes."""


class ExpenseNotFoundError(LookupError):
    """The identifier does not resolve to a stored expense."""

    def __init__(self, expense_id: str):
        super().__init__(f"Expense not found: {expense_id}")
        self.expense_id = expense_id


class StorageUnavailableError(ConnectionError):
    """MongoDB could not be reached or rejected the operation."""
