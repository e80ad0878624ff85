"""Ledger store and entry mutation package."""

from pageledger.ledger.mutator import EntryMutator
from pageledger.ledger.store import LedgerStore

__all__ = ["EntryMutator", "LedgerStore"]
