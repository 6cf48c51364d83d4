"""Reusable, strict base models for interchain value types."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """
    An immutable pydantic base model that rejects unknown fields.

    Every value handed across a capability boundary (chain configs, wallet
    amounts, handshake options, relayer results) derives from this model, so a
    value received from one collaborator cannot be mutated by another.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )

    def copy(self: Self, **kwargs: Any) -> Self:
        """Create a copy of the model with the updated fields that are validated."""
        return self.__class__(**(self.model_dump(exclude_unset=True) | kwargs))
