"""
Shared base for document models.

Document models are immutable once built. Field aliases carry the
on-disk key spelling (``versionCommand``, ``require-sudo``, ...), so
``to_document()`` writes back exactly the keys a document was read from.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _scalar_to_str(value: Any) -> Any:
    """YAML scalars (numbers, booleans) as the string a shell would see."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


# String field that also accepts unquoted YAML numbers and booleans
ScalarStr = Annotated[str, BeforeValidator(_scalar_to_str)]


class DocumentModel(BaseModel):
    """Frozen pydantic model that round-trips through its document form."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to document keys, omitting fields never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
