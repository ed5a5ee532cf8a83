"""
Property-based tests for the Retry Manager module.

Uses Hypothesis to check exponential backoff and which fetch failures
are retried.
"""

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from crisis_allowlist.config import RetryConfig
from crisis_allowlist.enums import FetchStatus, SyncErrorCode
from crisis_allowlist.retry_manager import RetryManager
from crisis_allowlist.sync_client import FetchError, FetchResponse


# Strategies for generating test data

@st.composite
def retry_config_strategy(draw) -> RetryConfig:
    """Generate valid RetryConfig objects with tiny delays."""
    return RetryConfig(
        max_retries=draw(st.integers(min_value=0, max_value=5)),
        base_delay_seconds=draw(st.floats(min_value=0.0001, max_value=0.001)),
        max_delay_seconds=draw(st.floats(min_value=0.001, max_value=0.005)),
    )


@st.composite
def transient_error_response_strategy(draw) -> FetchResponse:
    """Generate fetch responses with transient errors (should retry)."""
    code, http_status = draw(st.sampled_from([
        (SyncErrorCode.TIMEOUT, 0),
        (SyncErrorCode.NETWORK_ERROR, 0),
        (SyncErrorCode.RATE_LIMITED, 429),
        (SyncErrorCode.SERVER_ERROR, 500),
        (SyncErrorCode.SERVER_ERROR, 502),
        (SyncErrorCode.SERVER_ERROR, 503),
    ]))
    return FetchResponse(
        status=FetchStatus.ERROR,
        http_status_code=http_status,
        payload=None,
        error=FetchError(code=code, message=f"Transient error: {code.value}", http_status_code=http_status or None),
    )


@st.composite
def final_error_response_strategy(draw) -> FetchResponse:
    """Generate fetch responses with errors that must not be retried."""
    code, http_status = draw(st.sampled_from([
        (SyncErrorCode.CLIENT_ERROR, 400),
        (SyncErrorCode.CLIENT_ERROR, 404),
        (SyncErrorCode.TLS_ERROR, 0),
        (SyncErrorCode.PARSE_ERROR, 200),
        (SyncErrorCode.EMPTY_RESOURCES, 200),
    ]))
    return FetchResponse(
        status=FetchStatus.ERROR,
        http_status_code=http_status,
        payload=None,
        error=FetchError(code=code, message=f"Final error: {code.value}", http_status_code=http_status or None),
    )


def not_modified_response() -> FetchResponse:
    return FetchResponse(status=FetchStatus.NOT_MODIFIED, http_status_code=304, payload=None, error=None)


class TestExponentialBackoffProperty:
    """
    Property-based tests for exponential backoff.

    **Feature: crisis-allowlist, Property 24: Exponential backoff on transient errors**
    """

    @given(config=retry_config_strategy(), num_attempts=st.integers(min_value=1, max_value=8))
    @settings(max_examples=100)
    def test_delay_doubles_and_is_capped(self, config: RetryConfig, num_attempts: int):
        """
        *For any* configuration, delay(n) = base * 2^n capped at max_delay,
        and delays never decrease.
        """
        retry_manager = RetryManager(config)

        delays = [retry_manager.calculate_delay(attempt) for attempt in range(num_attempts)]

        for attempt, delay in enumerate(delays):
            expected = min(config.base_delay_seconds * (2 ** attempt), config.max_delay_seconds)
            assert abs(delay - expected) < 1e-9
        for previous, current in zip(delays, delays[1:]):
            assert current >= previous

    def test_default_schedule(self):
        retry_manager = RetryManager()
        assert retry_manager.config.max_retries == 2
        assert retry_manager.calculate_delay(0) == 1.0
        assert retry_manager.calculate_delay(1) == 2.0
        assert retry_manager.calculate_delay(10) == 30.0


class TestRetryDecisionProperty:
    """
    Property-based tests for which failures are retried.

    **Feature: crisis-allowlist, Property 25: Only transient failures are retried**
    """

    @given(config=retry_config_strategy(), response=transient_error_response_strategy())
    @settings(max_examples=50, deadline=None)
    def test_transient_errors_use_every_attempt(self, config: RetryConfig, response: FetchResponse):
        """
        *For any* persistent transient error, the fetch runs max_retries + 1 times.
        """
        retry_manager = RetryManager(config)
        calls = []

        async def operation():
            calls.append(1)
            return response

        final, attempts = asyncio.run(retry_manager.execute_fetch_with_retry(operation))

        assert final is response
        assert attempts == config.max_retries + 1
        assert len(calls) == attempts

    @given(config=retry_config_strategy(), response=final_error_response_strategy())
    @settings(max_examples=50, deadline=None)
    def test_final_errors_are_not_retried(self, config: RetryConfig, response: FetchResponse):
        """
        *For any* client, TLS or body error, the fetch runs exactly once.
        """
        retry_manager = RetryManager(config)

        async def operation():
            return response

        _, attempts = asyncio.run(retry_manager.execute_fetch_with_retry(operation))

        assert attempts == 1
        assert not retry_manager.should_retry(response)

    @given(
        config=retry_config_strategy().filter(lambda c: c.max_retries >= 1),
        error=transient_error_response_strategy(),
        failures=st.integers(min_value=1, max_value=5),
    )
    @settings(max_examples=50, deadline=None)
    def test_success_after_transient_failures(self, config: RetryConfig, error: FetchResponse, failures: int):
        """
        *For any* number of transient failures below the attempt limit,
        the first success is returned.
        """
        failures = min(failures, config.max_retries)
        retry_manager = RetryManager(config)
        responses = [error] * failures + [not_modified_response()]

        async def operation():
            return responses.pop(0)

        final, attempts = asyncio.run(retry_manager.execute_fetch_with_retry(operation))

        assert final.status == FetchStatus.NOT_MODIFIED
        assert attempts == failures + 1

    def test_successful_responses_never_retry(self):
        retry_manager = RetryManager()
        assert not retry_manager.should_retry(not_modified_response())

    def test_retryable_codes_follow_configuration(self):
        retry_manager = RetryManager(RetryConfig(retryable_errors=["timeout"]))
        assert retry_manager.is_retryable_error(SyncErrorCode.TIMEOUT)
        assert retry_manager.is_retryable_error("timeout")
        assert not retry_manager.is_retryable_error(SyncErrorCode.SERVER_ERROR)
