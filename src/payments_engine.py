import logging
from typing import Dict, Optional, TextIO

from csv_io import read_transactions
from exceptions import InvalidRowError, TransactionRejectedError
from ledger import Ledger
from models import Transaction, ClientAccount, ProcessingStats

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a CSV stream of transactions against a Ledger, in input order.

    In streaming mode (the default) malformed rows and rejected transactions
    are logged and counted, and processing continues. In strict mode the
    first one aborts the run with an exception.
    """

    def __init__(self, strict: bool = False, log_rejections: bool = True, ledger: Optional[Ledger] = None):
        self._strict = strict
        self._log_rejections = log_rejections
        self._ledger = ledger if ledger is not None else Ledger()
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8-sig", errors="replace") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        """Process CSV rows from an open text stream and return final account states."""
        logger.info("Starting processing")

        for item in read_transactions(stream):
            if isinstance(item, InvalidRowError):
                self._skip_row(item)
                continue
            self._apply_transaction(item)

        logger.info(
            f"Processing complete. Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Skipped rows: {self._stats.skipped_rows}"
        )

        return {account.client_id: account for account in self._ledger.accounts()}

    def _apply_transaction(self, transaction: Transaction) -> None:
        result = self._ledger.apply(transaction)

        if result.is_success:
            self._stats.record_success()
            logger.debug(f"Applied {transaction}")
            return

        self._stats.record_failure(result)
        if self._strict:
            raise TransactionRejectedError(transaction, result)
        if self._log_rejections:
            logger.warning(f"Rejected {transaction}: {result.value}")

    def _skip_row(self, error: InvalidRowError) -> None:
        if self._strict:
            raise error
        self._stats.record_skipped_row()
        logger.warning(f"Failed to parse row, skipping: {error}")
