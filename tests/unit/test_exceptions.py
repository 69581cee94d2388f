"""Tests for imagemill.exceptions module."""

import pytest

from imagemill.exceptions import (
    CommitInProgressError,
    ConfigError,
    ImageMillError,
    InsufficientCreditsError,
    LedgerUnavailableError,
    PersistenceError,
    TransformError,
)


class TestImageMillError:
    def test_plain_message(self):
        assert str(ImageMillError("boom")) == "boom"

    def test_context_rendered(self):
        error = ImageMillError("boom", context={"account": "user-1"})
        assert str(error) == "boom [account=user-1]"
        assert error.context == {"account": "user-1"}

    @pytest.mark.parametrize("cls", [
        ConfigError,
        TransformError,
        InsufficientCreditsError,
        CommitInProgressError,
        LedgerUnavailableError,
        PersistenceError,
    ])
    def test_hierarchy(self, cls):
        assert issubclass(cls, ImageMillError)


class TestConfigError:
    def test_field_and_suggestion(self):
        error = ConfigError("Invalid value 'x'", field="settings.credit_fee", suggestion="Use a whole number")
        assert str(error) == (
            "In field 'settings.credit_fee'\n"
            "Invalid value 'x'\n"
            "Suggestion: Use a whole number"
        )

    def test_message_only(self):
        assert str(ConfigError("bad")) == "bad"


class TestInsufficientCreditsError:
    def test_balance_and_fee_in_context(self):
        error = InsufficientCreditsError("Insufficient credits", balance=5, fee=10)
        assert error.balance == 5
        assert error.fee == 10
        assert str(error) == "Insufficient credits [balance=5, fee=10]"

    def test_is_transform_error(self):
        assert isinstance(InsufficientCreditsError("x"), TransformError)
