"""Typed directive documents decoded from ``.cfg`` files."""

from __future__ import annotations

from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import OverlayError


class DirectiveError(OverlayError):
    """Raised when a directive document is invalid or cannot be applied."""


class DirectiveModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ReplaceDirective(DirectiveModel):
    """Overwrite an existing checkout file with a patch-tree file or inline text."""

    file: str
    with_file: Optional[str] = None
    with_inline: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "ReplaceDirective":
        if (self.with_file is None) == (self.with_inline is None):
            raise ValueError("replace requires exactly one of 'with_file' or 'with_inline'")
        return self


class DeleteDirective(DirectiveModel):
    file: str


class AddDirective(DirectiveModel):
    """Copy a patch-tree file into the sources directory."""

    file: str
    name: Optional[str] = None


class PatchDirective(DirectiveModel):
    """Apply a diff stored in the patch tree, with checkout-root relative paths."""

    file: str
    strict: bool = True


class DirectiveDocument(DirectiveModel):
    """Ordered tree-level operations described by one directive file."""

    replace: List[ReplaceDirective] = Field(default_factory=list)
    delete: List[DeleteDirective] = Field(default_factory=list)
    add: List[AddDirective] = Field(default_factory=list)
    patch: List[PatchDirective] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.replace or self.delete or self.add or self.patch)


def decode_directive(data: bytes, *, source: str | None = None) -> DirectiveDocument:
    """Decode raw directive bytes into a :class:`DirectiveDocument`."""

    label = source or "<directive>"
    try:
        loaded = yaml.safe_load(data.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as error:
        raise DirectiveError(f"could not decode directive file {label}: {error}", details={"directive": label}) from error

    if loaded is None:
        return DirectiveDocument()
    if not isinstance(loaded, dict):
        raise DirectiveError(
            f"directive file {label} must contain a mapping at the top level",
            details={"directive": label},
        )

    try:
        return DirectiveDocument.model_validate(loaded)
    except ValidationError as error:
        raise DirectiveError(
            f"invalid directive file {label}: {error}",
            details={"directive": label, "errors": error.errors(include_url=False)},
        ) from error


__all__ = [
    "AddDirective",
    "DeleteDirective",
    "DirectiveDocument",
    "DirectiveError",
    "PatchDirective",
    "ReplaceDirective",
    "decode_directive",
]
