from __future__ import annotations

import asyncio

import pytest

from focal.core.exceptions import (
    ProviderConfigurationError,
    ProviderDataError,
    ProviderTransportError,
)
from focal.services.fallback import Outcome, credential_label, execute_with_fallback


class Recorder:
    def __init__(self, behaviours):
        self.behaviours = behaviours
        self.calls = []

    async def __call__(self, credential):
        self.calls.append(credential)
        result = self.behaviours[credential]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.mark.asyncio
async def test_second_credential_wins_and_first_error_is_discarded():
    op = Recorder({"k1": ProviderTransportError("401 unauthorized"), "k2": {"merchant": "Cafe"}})
    outcome = await execute_with_fallback(["k1", "k2"], op, label="test")
    assert outcome.ok
    assert outcome.value == {"merchant": "Cafe"}
    assert outcome.error is None
    assert outcome.attempts == 2
    assert op.calls == ["k1", "k2"]


@pytest.mark.asyncio
async def test_first_success_stops_iteration():
    op = Recorder({"k1": "draft", "k2": "unused"})
    outcome = await execute_with_fallback(["k1", "k2"], op, label="test")
    assert outcome.value == "draft"
    assert op.calls == ["k1"]


@pytest.mark.asyncio
async def test_exhaustion_returns_last_error():
    last = ProviderDataError("missing category")
    op = Recorder({"k1": ProviderTransportError("429"), "k2": last})
    outcome = await execute_with_fallback(["k1", "k2"], op, label="test")
    assert not outcome.ok
    assert outcome.error is last
    assert outcome.attempts == 2


@pytest.mark.asyncio
async def test_returned_failure_outcome_moves_on():
    op = Recorder({"k1": Outcome.failure(ProviderTransportError("down")), "k2": Outcome.success("ok")})
    outcome = await execute_with_fallback(["k1", "k2"], op, label="test")
    assert outcome.value == "ok"


@pytest.mark.asyncio
async def test_empty_credentials_never_call_operation():
    op = Recorder({})
    outcome = await execute_with_fallback([], op, label="gemini")
    assert isinstance(outcome.error, ProviderConfigurationError)
    assert outcome.attempts == 0
    assert op.calls == []


@pytest.mark.asyncio
async def test_timeout_is_a_transport_failure():
    async def op(credential):
        if credential == "slow":
            await asyncio.sleep(1)
        return credential

    outcome = await execute_with_fallback(["slow", "fast"], op, label="test", timeout=0.05)
    assert outcome.value == "fast"

    outcome = await execute_with_fallback(["slow"], op, label="test", timeout=0.05)
    assert isinstance(outcome.error, ProviderTransportError)


@pytest.mark.asyncio
async def test_programming_errors_propagate():
    op = Recorder({"k1": KeyError("bug"), "k2": "never"})
    with pytest.raises(KeyError):
        await execute_with_fallback(["k1", "k2"], op, label="test")
    assert op.calls == ["k1"]


def test_credential_labels():
    assert credential_label(0) == "primary"
    assert credential_label(2) == "fallback 2"
