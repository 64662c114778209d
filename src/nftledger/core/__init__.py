"""Core ledger types, errors, configuration and observability."""
