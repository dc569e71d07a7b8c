"""
Personal finance tracking core.

Users register and sign in; categories and transactions are stored per
user in MongoDB behind a generic repository.
"""

__version__ = "1.0.0"
