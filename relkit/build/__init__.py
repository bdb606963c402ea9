"""Pure build domain: trigger context, classification, naming, matrix.

Nothing in this package performs I/O.
"""
