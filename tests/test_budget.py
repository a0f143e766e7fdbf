"""Tests for FailureBudget."""

import pytest

from mtpmirror.budget import DEFAULT_MAX_FAILURES, FailureBudget
from mtpmirror.exceptions import FailureBudgetExceeded, MirrorAbort


class TestFailureBudget:
    def test_default_limit_is_ten(self):
        assert DEFAULT_MAX_FAILURES == 10
        assert FailureBudget().limit == 10

    def test_starts_at_zero(self):
        b = FailureBudget()
        assert b.count == 0
        assert b.remaining == 10
        assert not b.exhausted

    def test_ten_failures_keep_running(self):
        b = FailureBudget()
        for i in range(1, 11):
            assert b.record_failure() == i
        assert b.count == 10
        assert b.remaining == 0
        assert not b.exhausted

    def test_eleventh_failure_aborts(self):
        b = FailureBudget()
        for _ in range(10):
            b.record_failure()
        with pytest.raises(FailureBudgetExceeded) as info:
            b.record_failure()
        assert info.value.count == 11
        assert info.value.limit == 10
        assert b.exhausted

    def test_exceeded_is_an_abort(self):
        assert issubclass(FailureBudgetExceeded, MirrorAbort)

    def test_zero_limit_aborts_on_first_failure(self):
        b = FailureBudget(0)
        with pytest.raises(FailureBudgetExceeded):
            b.record_failure()

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            FailureBudget(-1)
