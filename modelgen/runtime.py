"""Base class and scalar types imported by generated model modules."""

from __future__ import annotations

from typing import Annotated, Any, Dict

from pydantic import BaseModel, ConfigDict, Field, JsonValue, PlainSerializer

SNOWFLAKE_MAX = 2**64 - 1

# Unsigned 64-bit id. Accepts ints or numeric strings and is written back as a
# string in JSON because values exceed the safe integer range of JS clients.
Snowflake = Annotated[
    int,
    Field(ge=0, le=SNOWFLAKE_MAX),
    PlainSerializer(str, return_type=str, when_used="json"),
]

# Stand-in for fields whose documented type could not be mapped.
OpaquePayload = JsonValue


class DiscordModel(BaseModel):
    """Base for generated models.

    Optional fields default to ``None``; whether the key was actually sent is
    kept in ``model_fields_set`` so absent and null stay distinguishable.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_attribute_docstrings=True,
        extra="allow",
        protected_namespaces=(),
    )

    def is_present(self, name: str) -> bool:
        """Return True when ``name`` was present in the source payload."""
        return name in self.model_fields_set

    def to_payload(self) -> Dict[str, Any]:
        """Dump to wire JSON, leaving out fields that were never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


__all__ = ["DiscordModel", "OpaquePayload", "SNOWFLAKE_MAX", "Snowflake"]
