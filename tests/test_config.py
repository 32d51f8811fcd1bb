"""
Tests for PaginatorConfig validation and option resolution.
"""

import pytest

from aiopaginator import (
    ConfigurationError,
    Mode,
    PaginatorConfig,
    has_option,
    paginator,
    paginator_unordered,
)


async def identity(num):
    return num


class TestPaginatorConfig:
    """Tests for PaginatorConfig."""

    def test_defaults(self):
        config = PaginatorConfig()

        assert config.chunks == 1
        assert config.offset == 0
        assert config.mode is Mode.CHUNKS
        assert config.end is None

    def test_mode_from_string(self):
        assert PaginatorConfig(mode="infinite").mode is Mode.INFINITE

    def test_size_is_sugar_for_limit(self):
        assert PaginatorConfig(size=3).end == 3
        assert PaginatorConfig(offset=2, size=3).end == 5

    def test_limit_passes_through(self):
        assert PaginatorConfig(offset=1, limit=5).end == 5

    @pytest.mark.parametrize(
        "options",
        [
            {"chunks": 0},
            {"chunks": -1},
            {"offset": -1},
            {"mode": "bogus"},
            {"limit": 3, "size": 2},
            {"chunks": 1.5},
            {"chunks": True},
            {"size": "3"},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError):
            PaginatorConfig(**options)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError) as exc_info:
            PaginatorConfig(chunks=0)

        assert exc_info.value.context == {"chunks": 0}
        assert "Invalid chunks=0" in str(exc_info.value)

    def test_from_options_ignores_none(self):
        config = PaginatorConfig.from_options(chunks=2, limit=None, size=None)

        assert config.chunks == 2
        assert config.end is None

    def test_from_options_rejects_unknown(self):
        with pytest.raises(ConfigurationError):
            PaginatorConfig.from_options(chunk=2)

    def test_has_option(self):
        assert has_option({"limit": 0}, "limit")
        assert not has_option({"limit": None}, "limit")
        assert not has_option({}, "limit")


class TestEagerValidation:
    """Configuration errors surface at call time, never mid-stream."""

    def test_unordered_fails_before_iteration(self):
        with pytest.raises(ConfigurationError):
            paginator_unordered([1, 2, 3], identity, chunks=0)

    def test_ordered_fails_before_iteration(self):
        with pytest.raises(ConfigurationError):
            paginator([1, 2, 3], identity, offset=-1)

    def test_source_not_touched_on_error(self):
        pulled = []

        def source():
            for i in range(3):
                pulled.append(i)
                yield i

        with pytest.raises(ConfigurationError):
            paginator(source(), identity, chunks=-2)

        assert pulled == []
