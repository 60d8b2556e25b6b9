"""tpledger - permissioned, append-only trust & performance ledger."""

__version__ = "0.1.0"
