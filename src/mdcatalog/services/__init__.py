"""
mdcatalog.services

Service-layer package.

Responsibilities:
- Own transaction boundaries and persistence decisions.
- Apply access rules and privilege semantics on top of the repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services should be pure Python and easily testable with a real session on SQLite.
