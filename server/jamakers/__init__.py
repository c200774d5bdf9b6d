"""
Backend package for the JA Makers marketplace API.

This package provides a FastAPI application with storage, session and
object-storage abstractions so the same routes run against an in-memory
store in development and Postgres or Convex in production.
"""
