"""
propledger/app.py
-----------------
Thin entrypoint for running the Proposal Ledger API via:

    uvicorn propledger.app:app

All real route wiring lives in propledger.ledger_api.
"""

from .ledger_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m propledger.app
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
