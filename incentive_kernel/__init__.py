"""
Incentive kernel: typed errors, structured logging, and the pure domain
types every other layer builds on.
"""

__version__ = "0.1.0"
