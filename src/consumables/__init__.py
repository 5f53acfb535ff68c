"""Consumables ledger bounded context."""
