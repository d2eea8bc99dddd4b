"""
mdcatalog.mef

Metadata Exchange Format (MEF) packaging.

Responsibilities:
- Resolve the MEF version from an Accept header and the export format from a query value.
- Write v1 (single record) and v2 (multi-record) ZIP archives with info.xml manifests.
"""

# Package marker.
