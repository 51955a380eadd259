"""
Household Hub - Source Package

Shared household management: grocery lists, shared expenses, a shared
calendar and team administration on top of a hosted document store.

DESIGN PRINCIPLES:
1. The ledger, optimizer and permission checks are pure functions
2. All team/member state is passed explicitly, never read from globals
3. Storage layer is swappable
4. Every mutation is permission-checked and auditable
"""

__version__ = "1.0.0"
__author__ = "Household Hub Team"
