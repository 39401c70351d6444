"""
Farm importer core

This package contains the extraction pipeline used to:
- Fetch playlist videos and turn each one into a farm record via GPT
- Normalize and validate records against the farm taxonomy and schema
- Hold records for review and export them as CSV

Nothing in this package should talk directly to Flask.
"""

from .contract import ExtractedRecord, RawItem

__all__ = [
    "ExtractedRecord",
    "RawItem",
]
