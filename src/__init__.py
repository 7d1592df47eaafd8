"""
Expense Reports - Source Package

Generates expense reports from a user's stored transactions and
delivers them by email and SMS, on demand or on a daily schedule.

DESIGN PRINCIPLES:
1. Reports are all-or-nothing: no partial report is ever sent
2. Fail early, fail visibly
3. One channel's failure never affects the other
4. Every run must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Accountant Team"
