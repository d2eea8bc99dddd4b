"""
mdcatalog.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, bootstrap data and repositories.
"""

# Package marker.
