import uuid

from sqlalchemy import JSON, String, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB


class EntityId(TypeDecorator):
    """Opaque text identifier.

    Values are stored verbatim as strings of up to 36 characters; ids minted
    by this service are uuid4 text. Lookups by malformed ids simply match
    nothing instead of raising.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)


def new_id() -> str:
    return str(uuid.uuid4())


JSONType = JSON().with_variant(JSONB(), "postgresql")
