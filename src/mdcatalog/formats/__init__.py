"""
mdcatalog.formats

XML handling for stored records (lxml).

Responsibilities:
- Parse and serialize record documents.
- Extract indexed fields and links from ISO 19139 / Dublin Core records.
- Convert records to JSON and adjust them for export (schemaLocation, xlink attributes).
"""

# Package marker.
