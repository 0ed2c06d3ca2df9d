"""
Example: Custody Ledger and Audit Trail

Demonstrates deposits, owner-only withdrawals, a rolled-back transfer
and auditing the ledger against the custodied balance.
"""

import asyncio

from custodia import (
    Custodia,
    InsufficientBalanceError,
    LedgerEvent,
    TransferFailedError,
    UnauthorizedError,
)

OWNER = "0x742d35Cc6634C0532925a3b844Bc9e7595f5e4a0"
ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"


def print_event(event: LedgerEvent) -> None:
    print(f"  [event] {event.type.value} #{event.index}: {event.amount} ({event.participant})")


async def main():
    print("=== Custodia Ledger Example ===\n")

    custody = Custodia(owner=OWNER)
    custody.events.subscribe(print_event)

    print("--- Deposits ---")
    await custody.deposit(ALICE, 100)
    await custody.receive(BOB, 25)
    print(f"  Balance: {await custody.balance()}\n")

    print("--- Withdrawals ---")
    await custody.withdraw(OWNER, 40)

    try:
        await custody.withdraw(ALICE, 10)
    except UnauthorizedError as e:
        print(f"  Rejected: {e}")

    try:
        await custody.withdraw(OWNER, 1000)
    except InsufficientBalanceError as e:
        print(f"  Rejected: {e}")

    # A recipient that refuses value: the withdrawal record is rolled back
    custody.host.reject_transfers_to(BOB)
    try:
        await custody.withdraw_to(OWNER, BOB, 10)
    except TransferFailedError as e:
        print(f"  Rejected: {e}")
    custody.host.accept_transfers_to(BOB)

    await custody.withdraw_to(OWNER, BOB, 50)
    print()

    print("--- Ledger ---")
    for record in await custody.transactions():
        print(f"  #{record.index} {record.kind.value:<10} {record.amount:>5}  {record.participant}")

    report = await custody.audit()
    print(f"\n  Balance: {report.balance}, ledger net: {report.totals.net}")
    print(f"  Consistent: {report.consistent}")


if __name__ == "__main__":
    asyncio.run(main())
