"""Shared Pydantic base for engine payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model read and written with camelCase aliases.

    Python code uses snake_case attributes; JSON payloads use the camelCase
    names the leave backend exchanges (``maxConsecutiveDays``).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
