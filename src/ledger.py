import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Dict, Iterator, Optional, Tuple

from amounts import checked_add, checked_sub, has_valid_scale
from models import Transaction, TransactionType, ClientAccount, ProcessingResult

logger = logging.getLogger(__name__)


class Ledger:
    """
    In-memory account state and transaction history for one run.

    Transactions are applied one at a time, in the order given.
    apply() returns a ProcessingResult; every check runs before any
    mutation, so a rejected transaction leaves balances, history and
    dispute flags exactly as they were.

    Only deposits and withdrawals are stored in history. Disputes, resolves
    and chargebacks act on a stored record by id and are not kept.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}

    def get(self, client_id: int) -> Optional[ClientAccount]:
        """Snapshot of a client's account, or None if the client was never referenced."""
        account = self._accounts.get(client_id)
        if account is None:
            return None
        return replace(account)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Snapshot of a stored deposit or withdrawal."""
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            return None
        return replace(transaction)

    def accounts(self) -> Iterator[ClientAccount]:
        for account in self._accounts.values():
            yield replace(account)

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            SUCCESS if the transaction was applied, otherwise the reason it
            was rejected. Rejections never change ledger state.
        """
        account = self._get_or_create_account(transaction.client_id)

        if not transaction.has_valid_shape():
            logger.debug(f"{transaction}: amount does not match transaction type")
            return ProcessingResult.INVALID_TX

        if account.locked:
            return ProcessingResult.ACCOUNT_LOCKED

        if not self._has_valid_amount(transaction):
            return ProcessingResult.INVALID_TX

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                return ProcessingResult.INVALID_TX

    process_transaction = apply

    def deposit(self, client_id: int, transaction_id: int, amount: Decimal) -> ProcessingResult:
        return self.apply(Transaction.deposit(client_id, transaction_id, amount))

    def withdrawal(self, client_id: int, transaction_id: int, amount: Decimal) -> ProcessingResult:
        return self.apply(Transaction.withdrawal(client_id, transaction_id, amount))

    def dispute(self, client_id: int, transaction_id: int) -> ProcessingResult:
        return self.apply(Transaction.dispute(client_id, transaction_id))

    def resolve(self, client_id: int, transaction_id: int) -> ProcessingResult:
        return self.apply(Transaction.resolve(client_id, transaction_id))

    def chargeback(self, client_id: int, transaction_id: int) -> ProcessingResult:
        return self.apply(Transaction.chargeback(client_id, transaction_id))

    def _get_or_create_account(self, client_id: int) -> ClientAccount:
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def _has_valid_amount(self, transaction: Transaction) -> bool:
        if transaction.amount is None:
            return True

        if not has_valid_scale(transaction.amount) or transaction.amount <= 0:
            logger.debug(f"{transaction}: invalid amount {transaction.amount}")
            return False

        return True

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        return self._handle_operation(account, transaction, checked_add)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        return self._handle_operation(account, transaction, checked_sub)

    def _handle_operation(
        self,
        account: ClientAccount,
        transaction: Transaction,
        operation: Callable[[Decimal, Decimal], Optional[Decimal]],
    ) -> ProcessingResult:
        new_available = operation(account.available, transaction.amount)
        if new_available is None:
            return ProcessingResult.MATH_ERROR

        if transaction.transaction_type == TransactionType.WITHDRAWAL and new_available < 0:
            return ProcessingResult.INSUFFICIENT_FUNDS

        if transaction.transaction_id in self._transactions:
            return ProcessingResult.TX_ALREADY_EXISTS

        # held is untouched, but total must stay inside the amount domain.
        if checked_add(new_available, account.held) is None:
            return ProcessingResult.MATH_ERROR

        self._transactions[transaction.transaction_id] = replace(transaction, disputed=False)
        account.available = new_available
        return ProcessingResult.SUCCESS

    def _find_referenced(self, transaction: Transaction) -> Tuple[Optional[Transaction], Optional[ProcessingResult]]:
        """
        Shared checks for dispute, resolve and chargeback.

        Returns the stored transaction and None, or None and the rejection.
        """
        original = self._transactions.get(transaction.transaction_id)
        if original is None:
            return None, ProcessingResult.TX_NOT_FOUND

        if original.client_id != transaction.client_id:
            logger.debug(
                f"{transaction.transaction_type.value} for tx {transaction.transaction_id}: "
                f"client mismatch (expected {original.client_id}, got {transaction.client_id})"
            )
            return None, ProcessingResult.CID_MISMATCH

        return original, None

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction)
        if rejection is not None:
            return rejection

        if original.transaction_type != TransactionType.DEPOSIT:
            return ProcessingResult.TX_MUST_BE_DEPOSIT

        if original.disputed:
            return ProcessingResult.TX_ALREADY_DISPUTED

        new_available = checked_sub(account.available, original.amount)
        new_held = checked_add(account.held, original.amount)
        if new_available is None or new_held is None:
            return ProcessingResult.MATH_ERROR

        account.available = new_available
        account.held = new_held
        original.disputed = True
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction)
        if rejection is not None:
            return rejection

        if not original.disputed:
            return ProcessingResult.TX_NOT_DISPUTED

        new_available = checked_add(account.available, original.amount)
        new_held = checked_sub(account.held, original.amount)
        if new_available is None or new_held is None:
            return ProcessingResult.MATH_ERROR

        account.available = new_available
        account.held = new_held
        original.disputed = False
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction)
        if rejection is not None:
            return rejection

        if not original.disputed:
            return ProcessingResult.TX_NOT_DISPUTED

        new_held = checked_sub(account.held, original.amount)
        if new_held is None:
            return ProcessingResult.MATH_ERROR

        account.held = new_held
        account.locked = True
        original.disputed = False
        return ProcessingResult.SUCCESS
