"""Tests for exponential backoff"""
import pytest

from job_manager.messaging.retry import compute_backoff


class TestComputeBackoff:

    @pytest.mark.parametrize("attempt,expected", [(1, 0.5), (2, 1.0), (3, 2.0), (4, 4.0)])
    def test_doubles_per_attempt(self, attempt, expected):
        assert compute_backoff(attempt, 0.5, 30.0) == expected

    def test_capped_at_max(self):
        assert compute_backoff(10, 1.0, 30.0) == 30.0

    def test_zero_initial_means_no_wait(self):
        assert compute_backoff(5, 0, 30.0) == 0

    def test_attempt_must_be_positive(self):
        with pytest.raises(ValueError):
            compute_backoff(0, 1.0, 30.0)
