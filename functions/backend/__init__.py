"""
Backend package for the wellness app.

This package provides a FastAPI application for the journal, video comments,
voice assistant and Stripe subscription checkout, with storage and auth
abstractions that fall back to in-memory implementations for local runs.
"""
