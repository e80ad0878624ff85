"""
Page Ledger - Source Package

A personal ledger: named pages (deoya / neoya) holding an ordered
list of money entries, with per-page and per-type totals.

DESIGN PRINCIPLES:
1. The Page is the unit of consistency - entries live inside it
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Page Ledger Team"
