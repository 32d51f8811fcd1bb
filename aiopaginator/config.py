"""Paginator configuration, validated eagerly at construction time."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import ConfigurationError
from .types import Mode


def has_option(options: Mapping[str, Any], name: str) -> bool:
    """Whether an option was supplied with a real value (None means absent)."""
    return options.get(name) is not None


def _check_int(name: str, value: Any) -> None:
    # bool is an int subclass but never a meaningful count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"Invalid {name}={value!r}", **{name: value})


@dataclass(frozen=True)
class PaginatorConfig:
    """Configuration for a paginator.

    Attributes:
        chunks: Max transforms in flight at once (> 0)
        offset: Number of source items to skip (>= 0)
        mode: Admission policy, see Mode
        limit: End position of the window; exclusive with size
        size: Number of items wanted after offset; sugar for limit = size + offset
    """

    chunks: int = 1
    offset: int = 0
    mode: Mode = Mode.CHUNKS
    limit: Optional[int] = None
    size: Optional[int] = None

    def __post_init__(self):
        _check_int("chunks", self.chunks)
        _check_int("offset", self.offset)
        if self.chunks <= 0:
            raise ConfigurationError(f"Invalid chunks={self.chunks}", chunks=self.chunks)
        if self.offset < 0:
            raise ConfigurationError(f"Invalid offset={self.offset}", offset=self.offset)

        try:
            mode = Mode(self.mode)
        except ValueError:
            raise ConfigurationError(f"Invalid mode={self.mode!r}", mode=self.mode) from None
        object.__setattr__(self, "mode", mode)

        options = {"limit": self.limit, "size": self.size}
        if has_option(options, "limit") and has_option(options, "size"):
            raise ConfigurationError(
                "limit and size are mutually exclusive",
                limit=self.limit,
                size=self.size,
            )
        for name, value in options.items():
            if value is not None:
                _check_int(name, value)

    @property
    def end(self) -> Optional[int]:
        """Resolved limit handed to the source sequencer."""
        if self.limit is not None:
            return self.limit
        if self.size is not None:
            return self.size + self.offset
        return None

    @classmethod
    def from_options(cls, **options: Any) -> PaginatorConfig:
        """Build a config from keyword options, ignoring ones passed as None."""
        unknown = set(options) - {"chunks", "offset", "mode", "limit", "size"}
        if unknown:
            raise ConfigurationError(
                f"Unknown paginator options: {', '.join(sorted(unknown))}"
            )
        return cls(**{k: v for k, v in options.items() if v is not None})
