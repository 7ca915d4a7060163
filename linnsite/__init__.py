"""
Backend package for the linn.games site.

This package provides a FastAPI application that serves the static site,
keeps a visit counter and contact submissions in a SQL store, and proxies
GitHub repository metadata through a short-lived cache.
"""
