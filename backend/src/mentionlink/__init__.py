"""
mentionlink - Mention resolution engine for contact enrichment

Resolves people mentioned in an enrichment transcript to existing
contact records, with a confidence score and auditable reasons.
"""

__version__ = "0.1.0"
