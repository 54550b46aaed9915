"""
Transactions Backend package.

FastAPI application serving CRUD endpoints for transactions and users over a
pluggable document store (in-memory or MongoDB). Build an app with
``src.api.main.create_app`` or import the module-level ``src.api.main.app``.
"""
