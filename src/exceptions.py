from typing import Optional

from models import ProcessingResult, Transaction


class PaymentsError(Exception):
    """Base class for errors that abort processing of an input stream."""


class InvalidRowError(PaymentsError, ValueError):
    """A CSV row could not be turned into a Transaction."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class TransactionRejectedError(PaymentsError):
    """Raised in strict mode when the ledger rejects a transaction."""

    def __init__(self, transaction: Transaction, result: ProcessingResult):
        self.transaction = transaction
        self.result = result
        super().__init__(f"{transaction} rejected: {result.value}")
