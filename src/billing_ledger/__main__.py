"""Command line entry point for customer balance operations.

Usage:
    python -m billing_ledger balance <customer-id>
    python -m billing_ledger pay <customer-id> <amount>
"""

import argparse
import asyncio
import sys
from decimal import Decimal

from billing_ledger.config import configure_logging, get_logger
from billing_ledger.errors import BillingError
from billing_ledger.models import Customer
from billing_ledger.money import round_money, to_decimal
from billing_ledger.tools.billing_api import BillingAPIClient, BillingAPIError
from billing_ledger.workflow import InvoiceWorkflow

logger = get_logger(__name__)


def money(value: str) -> Decimal:
    return round_money(to_decimal(value))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="billing_ledger",
        description="Customer balance operations against the billing backend",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default: LOG_FORMAT)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    balance = commands.add_parser("balance", help="Show a customer's amount due")
    balance.add_argument("customer_id")

    pay = commands.add_parser("pay", help="Record a payment against a customer's balance")
    pay.add_argument("customer_id")
    pay.add_argument("amount", type=money)

    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(format=args.log_format)

    try:
        async with BillingAPIClient() as api:
            if args.command == "balance":
                customer = Customer.from_api(await api.get_customer(args.customer_id))
                print(f"{customer.name}: {customer.amount_due}")
            else:
                entry = await InvoiceWorkflow(api).record_payment(args.customer_id, args.amount)
                print(f"{entry.customer_id}: {entry.balance_before} -> {entry.balance_after}")
    except (BillingError, BillingAPIError, ValueError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
