import sys
import logging
from typing import List, Optional

from pydantic import ValidationError

from config import get_settings
from csv_io import write_accounts
from exceptions import PaymentsError
from payments_engine import PaymentsEngine

USAGE = "Usage: payments-engine <path-to-transactions.csv>"


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if len(argv) != 1:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
    )

    filepath = argv[0]
    engine = PaymentsEngine(strict=settings.strict, log_rejections=settings.log_rejections)
    try:
        accounts = engine.process_file(filepath)
    except (OSError, PaymentsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts.values(), sys.stdout)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
