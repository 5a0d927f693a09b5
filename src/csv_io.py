import csv
from typing import Dict, Iterable, Iterator, Optional, TextIO, Union

from amounts import format_amount, parse_amount
from exceptions import InvalidRowError
from models import Transaction, TransactionType, ClientAccount

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def _parse_id(value: str, name: str, maximum: int, line_number: Optional[int]) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise InvalidRowError(f"invalid {name} {value!r}", line_number) from None

    if not 0 <= parsed <= maximum:
        raise InvalidRowError(f"{name} {value!r} out of range", line_number)
    return parsed


def parse_csv_row(row: Dict[Optional[str], object], line_number: Optional[int] = None) -> Transaction:
    """
    Parse a csv.DictReader row into a Transaction.

    Missing trailing fields are allowed (dispute rows usually have no amount);
    extra fields are not, unless they are empty.
    """
    extra = row.get(None)
    if extra and any(v.strip() for v in extra):
        raise InvalidRowError(f"too many fields: {extra}", line_number)

    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type_str = normalized["type"].lower()
        client_str = normalized["client"]
        transaction_id_str = normalized["tx"]
    except KeyError as e:
        raise InvalidRowError(f"missing column {e}", line_number) from None

    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        raise InvalidRowError(f"unknown transaction type {transaction_type_str!r}", line_number) from None

    client_id = _parse_id(client_str, "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_id(transaction_id_str, "tx", MAX_TRANSACTION_ID, line_number)

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        try:
            amount = parse_amount(amount_str)
        except ValueError as e:
            raise InvalidRowError(str(e), line_number) from None

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _is_blank(row: Dict[Optional[str], object]) -> bool:
    for key, value in row.items():
        values = value if key is None else [value]
        if any(v and v.strip() for v in values):
            return False
    return True


def read_transactions(stream: TextIO) -> Iterator[Union[Transaction, InvalidRowError]]:
    """
    Yield a Transaction for every data row of a CSV stream, in order.

    Malformed rows are yielded as InvalidRowError instances rather than
    raised, so the caller decides whether to skip them or abort.
    """
    reader = csv.DictReader(stream, skipinitialspace=True)
    for row in reader:
        if _is_blank(row):
            continue
        try:
            yield parse_csv_row(row, reader.line_num)
        except InvalidRowError as e:
            yield e


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """
    Write one CSV row per account, preceded by a header row.
    Rows are sorted by client id.
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in sorted(accounts, key=lambda a: a.client_id):
        writer.writerow([
            account.client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])
