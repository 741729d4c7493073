"""Input model base and shared field fragments for tool arguments.

Each tool declares a pydantic model deriving from ``ToolInput``. The model's
``action`` field is a ``Literal`` of the tool's actions; per-action cross-field
rules live in ``REQUIRED_BY_ACTION`` as groups of alternatives (every group
needs at least one non-empty field).
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from .errors import MISSING_PARAMETERS_MESSAGE, ValidationError

ShortString = Annotated[str, Field(max_length=255)]
MediumString = Annotated[str, Field(max_length=1000)]
LongString = Annotated[str, Field(max_length=10000)]
Owner = Annotated[str, Field(min_length=1, max_length=100, description="Repository owner (auto-detected when omitted)")]
RepoName = Annotated[str, Field(min_length=1, max_length=100, description="Repository name")]
ProviderName = Annotated[str, Field(min_length=1, max_length=100, description="Configured provider name")]
BranchName = Annotated[str, Field(min_length=1, max_length=255)]
# Values passed as positional git arguments must not look like options.
GitArgument = Annotated[str, Field(min_length=1, max_length=1000, pattern=r"^[^-]")]
Page = Annotated[int, Field(ge=1, le=1000, description="Page number")]
Limit = Annotated[int, Field(ge=1, le=100, description="Items per page")]
PositiveId = Annotated[int, Field(ge=1)]
StringList = Annotated[list[ShortString], Field(max_length=50)]


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


class ToolInput(BaseModel):
    """Base for tool argument models."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {}

    @model_validator(mode="after")
    def _check_action_requirements(self) -> ToolInput:
        groups = self.REQUIRED_BY_ACTION.get(getattr(self, "action", ""), ())
        for group in groups:
            if not any(is_present(getattr(self, name, None)) for name in group):
                raise PydanticCustomError("action_requirements", MISSING_PARAMETERS_MESSAGE)
        return self

    @classmethod
    def action_names(cls) -> tuple[str, ...]:
        return tuple(get_args(cls.model_fields["action"].annotation))


class RepoToolInput(ToolInput):
    """Common ``owner``/``repo``/``provider`` fields."""

    owner: Owner | None = None
    repo: RepoName
    provider: ProviderName | None = None


def format_validation_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{loc}: {message}" if loc else message)
    return "; ".join(parts)


def parse_arguments(model: type[ToolInput], arguments: dict[str, Any] | None) -> ToolInput:
    """Validate raw tool arguments against ``model``.

    Raises:
        ValidationError: Listing every violated constraint.
    """
    try:
        return model.model_validate(arguments or {})
    except PydanticValidationError as exc:
        raise ValidationError(message=format_validation_errors(exc)) from exc
