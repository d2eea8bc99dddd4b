"""
mdcatalog.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- FastAPI auth dependencies (Principal, anonymous callers, authenticated-only guards).
"""

# Package marker.
