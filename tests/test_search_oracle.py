"""Tests for the fallback search oracles."""

from types import SimpleNamespace

import pytest

from affiliate_scout.adapters.search_oracle import (
    ClaudeSearchOracle,
    NullSearchOracle,
    SearchVerdict,
)


class FakeMessages:
    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.answer)])


def _oracle(answer=None, error=None):
    messages = FakeMessages(answer=answer, error=error)
    return ClaudeSearchOracle(None, client=SimpleNamespace(messages=messages)), messages


@pytest.mark.asyncio
async def test_null_oracle_is_unknown():
    assert await NullSearchOracle().check("Acme", "acme.test") == SearchVerdict.UNKNOWN


@pytest.mark.asyncio
@pytest.mark.parametrize("answer,verdict", [
    ("YES", SearchVerdict.LIKELY),
    ("yes.", SearchVerdict.LIKELY),
    ("NO", SearchVerdict.UNLIKELY),
    ("UNKNOWN", SearchVerdict.UNKNOWN),
    ("Probably", SearchVerdict.UNKNOWN),
])
async def test_claude_answers_map_to_verdicts(answer, verdict):
    oracle, messages = _oracle(answer=answer)

    assert await oracle.check("Acme", "acme.test") == verdict
    assert messages.calls[0]["temperature"] == 0
    assert "acme.test" in messages.calls[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_claude_error_is_unknown():
    oracle, _ = _oracle(error=RuntimeError("rate limited"))
    assert await oracle.check("Acme", "acme.test") == SearchVerdict.UNKNOWN


@pytest.mark.asyncio
async def test_unconfigured_claude_oracle():
    oracle = ClaudeSearchOracle(None)

    assert not oracle.is_available()
    assert await oracle.check("Acme", "acme.test") == SearchVerdict.UNKNOWN
