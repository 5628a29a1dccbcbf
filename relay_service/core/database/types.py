"""Custom SQLAlchemy column types."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


class JSONPayload(TypeDecorator):
    """JSON document column that always holds JSON text on the Python side.

    PostgreSQL stores the value as JSONB so payloads can be inspected and
    indexed in SQL. Other dialects (SQLite in tests) store the text verbatim.

    JSONB normalizes key order and whitespace, so the text read back is
    semantically equal to, but not necessarily byte-identical with, the text
    written.

    Example:
        class OutboxMessage(Base):
            event_payload: Mapped[str] = mapped_column(JSONPayload())
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        """Use JSONB on PostgreSQL and plain text elsewhere."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: str | None, dialect: Dialect) -> Any:
        """Decode the JSON text so the JSONB bind processor encodes it once."""
        if value is None:
            return None
        if dialect.name == "postgresql":
            return json.loads(value)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> str | None:
        """Return JSON text regardless of how the driver decoded the column."""
        if value is None:
            return None
        if isinstance(value, str) and dialect.name != "postgresql":
            return value
        return json.dumps(value, ensure_ascii=False)
