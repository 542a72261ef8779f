"""Tests for the coverforge exception hierarchy."""

from __future__ import annotations

from coverforge.errors import (
    ConfigurationError,
    CoverForgeError,
    DuplicateRowError,
    ErrorCode,
    ErrorContext,
    InvalidTupleError,
    PartialCoverageWarning,
)
from coverforge.tuples import Tuple


class TestErrorCode:
    """Tests for error code categories."""

    def test_categories(self):
        assert ErrorCode.INVALID_STRENGTH.category == "configuration"
        assert ErrorCode.INVALID_LEVEL.category == "tuple"
        assert ErrorCode.PARTIAL_COVERAGE.category == "generation"
        assert ErrorCode.UNKNOWN.category == "unknown"

    def test_codes_unique(self):
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_format_location(self):
        ctx = ErrorContext(engine="aetg", factor="os", strength=2)
        assert ctx.format_location() == "engine=aetg > factor=os > strength=2"

    def test_unknown_location(self):
        assert ErrorContext().format_location() == "unknown location"

    def test_to_dict_drops_empty(self):
        data = ErrorContext(factor="os").to_dict()
        assert data["factor"] == "os"
        assert "engine" not in data
        assert "extra" not in data
        assert "timestamp" in data


class TestCoverForgeError:
    """Tests for the base exception and its subclasses."""

    def test_defaults(self):
        err = ConfigurationError()
        assert err.message == "Invalid generation configuration"
        assert err.error_code == ErrorCode.INVALID_SETTING
        assert err.suggestions
        assert isinstance(err, CoverForgeError)

    def test_str_includes_code_and_location(self):
        err = ConfigurationError(
            "Strength 5 out of range",
            error_code=ErrorCode.INVALID_STRENGTH,
            context=ErrorContext(strength=5),
        )
        assert str(err) == "[E102] Strength 5 out of range | at strength=5"

    def test_extra_context_kwargs(self):
        err = InvalidTupleError("bad", row=3)
        assert err.context.extra == {"row": 3}

    def test_custom_suggestions(self):
        err = ConfigurationError("x", suggestions=["do this"])
        assert err.suggestions == ["do this"]

    def test_default_suggestions_are_copies(self):
        err = ConfigurationError()
        err.suggestions.append("mutated")
        assert "mutated" not in ConfigurationError().suggestions

    def test_format_verbose(self):
        err = ConfigurationError("Factor 'x' has no levels", context=ErrorContext(factor="x"))
        text = err.format_verbose()
        assert text.startswith("Error [E106]: Factor 'x' has no levels")
        assert "Location: factor=x" in text
        assert "Suggestions:" in text

    def test_to_dict(self):
        cause = ValueError("boom")
        data = ConfigurationError("x", cause=cause).to_dict()
        assert data["error_type"] == "ConfigurationError"
        assert data["error_code"] == "E106"
        assert data["cause"] == "boom"

    def test_duplicate_row_is_tuple_error(self):
        err = DuplicateRowError()
        assert isinstance(err, InvalidTupleError)
        assert err.error_code == ErrorCode.DUPLICATE_ROW
        assert err.suggestions == []


class TestPartialCoverageWarning:
    """Tests for PartialCoverageWarning."""

    def test_is_user_warning(self):
        assert issubclass(PartialCoverageWarning, UserWarning)

    def test_carries_residue(self):
        residue = [Tuple({"A": 0, "B": 0})]
        warning = PartialCoverageWarning(residue, engine="ipo", strength=2)
        assert warning.uncovered_count == 1
        assert warning.residue == residue
        assert str(warning) == "ipo could not cover 1 2-way target tuple(s)"

    def test_to_dict(self):
        warning = PartialCoverageWarning([Tuple({"A": 0, "B": 0})], engine="aetg", strength=2)
        assert warning.to_dict() == {
            "error_code": "E301",
            "engine": "aetg",
            "strength": 2,
            "uncovered_count": 1,
            "residue": [{"A": 0, "B": 0}],
        }
