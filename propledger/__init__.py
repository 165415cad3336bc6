"""
Proposal Ledger package initializer

Keep this module lightweight. Do not import FastAPI or the executor here,
so the runtime can be used without the HTTP stack.
"""

__all__ = []
