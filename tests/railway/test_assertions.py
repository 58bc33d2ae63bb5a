"""Tests for ResultAssertions test helper."""

import pytest

from railway import ErrorCode, Result, ResultAssertions


class TestAssertSuccess:
    def test_passes_on_success(self):
        assert ResultAssertions.assert_success(Result.success(42)) == 42

    def test_fails_on_failure_with_clear_message(self):
        result = Result.failure(ErrorCode.PARSE_ERROR, "missing END")
        with pytest.raises(AssertionError, match="Expected Success but got Failure"):
            ResultAssertions.assert_success(result)

    def test_custom_message(self):
        result = Result.failure(ErrorCode.IO_ERROR, "x")
        with pytest.raises(AssertionError, match="custom context"):
            ResultAssertions.assert_success(result, "custom context")


class TestAssertFailure:
    def test_passes_on_failure(self):
        error = ResultAssertions.assert_failure(Result.failure(ErrorCode.IO_ERROR, "missing"))
        assert error.code == ErrorCode.IO_ERROR

    def test_checks_error_code(self):
        error = ResultAssertions.assert_failure(
            Result.failure(ErrorCode.FORMAT_ERROR, "bad"),
            ErrorCode.FORMAT_ERROR,
        )
        assert error.message == "bad"

    def test_fails_on_wrong_error_code(self):
        result = Result.failure(ErrorCode.IO_ERROR, "x")
        with pytest.raises(AssertionError, match="Expected error code PARSE_ERROR"):
            ResultAssertions.assert_failure(result, ErrorCode.PARSE_ERROR)

    def test_fails_on_success(self):
        with pytest.raises(AssertionError, match="Expected Failure but got Success"):
            ResultAssertions.assert_failure(Result.success(42))


class TestAssertFailureMessage:
    def test_case_insensitive(self):
        result = Result.failure(ErrorCode.EMPTY_RESULT_ERROR, "ZERO ROOTS")
        ResultAssertions.assert_failure_message_contains(result, "zero roots")

    def test_matches_exception_cause(self):
        result = Result.failure(ErrorCode.IO_ERROR, "unable to open", FileNotFoundError("certdata.txt"))
        ResultAssertions.assert_failure_message_contains(result, "certdata.txt")

    def test_fails_when_not_contained(self):
        result = Result.failure(ErrorCode.PARSE_ERROR, "bad octal")
        with pytest.raises(AssertionError, match="Expected failure message to contain"):
            ResultAssertions.assert_failure_message_contains(result, "missing END")
