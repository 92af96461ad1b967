"""glowstock - stock ledger and deduction engine."""

__version__ = "1.0.0"
