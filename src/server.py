"""Protean Engine runner for the consumables domain.

Needed when PROTEAN_ENV selects async event processing: the Engine picks
up Consumable, ConsumableOperation and StockAlert events and runs the
alert synchronizer, the alert notifier and the operation log projector.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from consumables.domain import consumables

    consumables.init()
    return consumables


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    argparse.ArgumentParser(description="Consumables ledger Engine runner").parse_args()
    asyncio.run(run())


if __name__ == "__main__":
    main()
