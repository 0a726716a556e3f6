"""
simplets

A mutual-credit (LETS-style) currency ledger: a closed pool of accounts that
issue credit to each other under dynamically computed send and receive
limits, with balances that always sum to zero.
"""

__version__ = "1.0.0"
