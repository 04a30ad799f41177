"""Configuration for template compilation.

Every key is accepted in its camelCase spelling (``openDelimiter``) as well as
its snake_case field name (``open_delimiter``).
"""

from __future__ import annotations

import keyword
import os
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from pyejs.errors import TemplateSyntaxError
from pyejs.escape import escape_xml

DEFAULT_OPEN_DELIMITER = "<"
DEFAULT_CLOSE_DELIMITER = ">"
DEFAULT_DELIMITER = "%"
DEFAULT_LOCALS_NAME = "locals"
DEFAULT_TYPE = "ejs"

# Keys that render() lifts out of the data argument when no options are given
OPTS_PASSABLE_WITH_DATA = (
    "delimiter",
    "debug",
    "compileDebug",
    "client",
    "_with",
    "rmWhitespace",
    "strict",
    "filename",
    "async",
)


def is_identifier(name: Any) -> bool:
    """Check that ``name`` can be bound as a plain Python name."""
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name)


class Options(BaseModel):
    """Immutable configuration snapshot for one compile call."""

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    delimiter: str = Field(DEFAULT_DELIMITER, min_length=1)
    open_delimiter: str = Field(
        DEFAULT_OPEN_DELIMITER, alias="openDelimiter", min_length=1
    )
    close_delimiter: str = Field(
        DEFAULT_CLOSE_DELIMITER, alias="closeDelimiter", min_length=1
    )
    locals_name: str = Field(DEFAULT_LOCALS_NAME, alias="localsName")
    destructured_locals: Optional[List[str]] = Field(None, alias="destructuredLocals")
    strict: bool = False
    implicit_locals: Optional[bool] = Field(None, alias="_with")
    rm_whitespace: bool = Field(False, alias="rmWhitespace")
    filename: Optional[str] = None
    root: Union[str, List[str], None] = None
    views: Optional[List[str]] = None
    includer: Optional[Callable[..., Any]] = None
    cache: bool = False
    escape_function: Callable[[Any], str] = Field(
        escape_xml,
        validation_alias=AliasChoices("escapeFunction", "escape", "escape_function"),
    )
    output_function_name: Optional[str] = Field(None, alias="outputFunctionName")
    is_async: bool = Field(False, alias="async")
    debug: bool = False
    compile_debug: bool = Field(True, alias="compileDebug")
    client: bool = False
    prefix: str = ""
    files: List[Tuple[str, ...]] = Field(default_factory=list)
    type: str = DEFAULT_TYPE

    @model_validator(mode="before")
    @classmethod
    def _drop_unset(cls, data: Any) -> Any:
        # Explicit None means "use the default", as in an options object with
        # undefined members.
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("filename", mode="before")
    @classmethod
    def _fspath(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("root", "views", mode="before")
    @classmethod
    def _fspath_list(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        if isinstance(value, (list, tuple)):
            return [os.fspath(v) if isinstance(v, os.PathLike) else v for v in value]
        return value

    @field_validator("files")
    @classmethod
    def _check_files(cls, value: List[Tuple[str, ...]]) -> List[Tuple[str, ...]]:
        for entry in value:
            if len(entry) not in (2, 3):
                raise ValueError("files entries must be (name, path) or (name, path, type)")
        return value

    @property
    def exposes_locals(self) -> bool:
        """Whether data fields are name-addressable without declaration."""
        if self.strict or self.destructured_locals:
            return False
        return self.implicit_locals is not False

    def validate_identifiers(self) -> None:
        """Check every name that the generated program will bind.

        Raises:
            TemplateSyntaxError: If any configured name is not a valid identifier.
        """
        if self.output_function_name is not None and not is_identifier(
            self.output_function_name
        ):
            raise TemplateSyntaxError("outputFunctionName is not a valid identifier.")
        if not is_identifier(self.locals_name):
            raise TemplateSyntaxError("localsName is not a valid identifier.")
        for i, name in enumerate(self.destructured_locals or []):
            if not is_identifier(name):
                raise TemplateSyntaxError(
                    f"destructuredLocals[{i}] is not a valid identifier."
                )
        for i, entry in enumerate(self.files):
            if not is_identifier(entry[0]):
                raise TemplateSyntaxError(f"files[{i}] name is not a valid identifier.")

    def merged(self, **overrides: Any) -> "Options":
        """Return a copy with ``overrides`` applied (aliases accepted)."""
        if not overrides:
            return self
        data = self.model_dump()
        data.update(_normalize_keys(overrides))
        return Options.model_validate(data)

    @classmethod
    def coerce(
        cls,
        options: Union["Options", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "Options":
        """Build an ``Options`` from an instance, a mapping, or keyword overrides."""
        if isinstance(options, Options):
            return options.merged(**overrides)
        data = _normalize_keys(dict(options or {}))
        data.update(_normalize_keys(overrides))
        return cls.model_validate(data)


def _alias_table() -> dict[str, str]:
    table: dict[str, str] = {}
    for name, info in Options.model_fields.items():
        table[name] = name
        if info.alias:
            table[info.alias] = name
        if isinstance(info.validation_alias, AliasChoices):
            for choice in info.validation_alias.choices:
                if isinstance(choice, str):
                    table[choice] = name
    return table


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    table = _alias_table()
    return {table.get(key, key): value for key, value in data.items()}
