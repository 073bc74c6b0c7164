"""Test suite configuration and marker guidance.

Use ``pytest -m smoke`` for rapid feedback on imports and runtime errors. Can be done in CI through github actions.
Use ``pytest -m unit`` for fast feedback on unit tests. Can be done in CI through github actions.
Use ``pytest`` to run everything.
"""
