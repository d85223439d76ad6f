"""FinTrack: settlement-aware personal finance ledger."""
