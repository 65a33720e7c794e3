"""
Column types shared by the models.
"""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# Inline JSON document: JSONB on PostgreSQL, plain JSON everywhere else.
JSONDocument = JSON().with_variant(JSONB(), "postgresql")
