from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from amounts import AMOUNT_CONTEXT


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    MATH_ERROR = "math_error"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TX_ALREADY_EXISTS = "tx_already_exists"
    TX_NOT_FOUND = "tx_not_found"
    CID_MISMATCH = "cid_mismatch"
    TX_ALREADY_DISPUTED = "tx_already_disputed"
    TX_NOT_DISPUTED = "tx_not_disputed"
    TX_MUST_BE_DEPOSIT = "tx_must_be_deposit"
    ACCOUNT_LOCKED = "account_locked"
    INVALID_TX = "invalid_tx"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    # Only meaningful on deposits stored in ledger history.
    disputed: bool = field(default=False, compare=False)

    @classmethod
    def deposit(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.DEPOSIT, client_id, transaction_id, amount)

    @classmethod
    def withdrawal(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.WITHDRAWAL, client_id, transaction_id, amount)

    @classmethod
    def dispute(cls, client_id: int, transaction_id: int) -> "Transaction":
        """The amount is taken from the referenced transaction, never from the dispute itself."""
        return cls(TransactionType.DISPUTE, client_id, transaction_id)

    @classmethod
    def resolve(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.RESOLVE, client_id, transaction_id)

    @classmethod
    def chargeback(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.CHARGEBACK, client_id, transaction_id)

    def has_valid_shape(self) -> bool:
        """True when the amount is present exactly for deposits and withdrawals."""
        return self.transaction_type.carries_amount == (self.amount is not None)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return AMOUNT_CONTEXT.add(self.available, self.held)


class ProcessingStats:
    """Counters for a single run of the engine."""

    def __init__(self):
        self.processed = 0
        self.skipped_rows = 0
        self.rejections: Counter = Counter()

    @property
    def failed(self) -> int:
        return sum(self.rejections.values())

    def record_success(self):
        self.processed += 1

    def record_failure(self, result: ProcessingResult):
        self.rejections[result] += 1

    def record_skipped_row(self):
        self.skipped_rows += 1

    def __repr__(self) -> str:
        return f"ProcessingStats(processed={self.processed}, failed={self.failed}, skipped_rows={self.skipped_rows})"
