import pytest

from azure_text_processor.core.types import BudgetPolicy
from azure_text_processor.pipeline import BudgetGuard
from azure_text_processor.tokens import TokenizerAdapter

pytestmark = pytest.mark.unit


@pytest.fixture
def guard(char_tokenizer) -> BudgetGuard:
    return BudgetGuard(char_tokenizer, BudgetPolicy(ceiling=100))


def test_payload_at_ceiling_is_admitted(guard):
    decision = guard.evaluate("x" * 100)
    assert decision.count == 100
    assert decision.admitted
    assert decision.severe and decision.warn


def test_payload_over_ceiling_is_rejected(guard):
    decision = guard.evaluate("x" * 101)
    assert not decision.admitted
    assert decision.remaining == -1


@pytest.mark.parametrize(
    ("length", "warn", "severe"),
    [(749, False, False), (750, True, False), (874, True, False), (875, True, True)],
)
def test_warning_thresholds(char_tokenizer, length, warn, severe):
    guard = BudgetGuard(
        char_tokenizer, BudgetPolicy(ceiling=1000, warn_ratio=0.75, severe_ratio=0.875)
    )
    decision = guard.evaluate("x" * length)
    assert decision.admitted
    assert (decision.warn, decision.severe) == (warn, severe)


def test_empty_payload_is_admitted_with_zero_count(guard):
    decision = guard.evaluate("")
    assert decision.count == 0
    assert decision.admitted
    assert not decision.warn


def test_explicit_ceiling_overrides_policy(guard):
    decision = guard.evaluate("x" * 50, ceiling=40)
    assert decision.ceiling == 40
    assert not decision.admitted


def test_ceiling_below_one_is_rejected(guard):
    with pytest.raises(ValueError, match="ceiling"):
        guard.evaluate("x", ceiling=0)


def test_default_policy_uses_200k_ceiling():
    guard = BudgetGuard(TokenizerAdapter(len))
    assert guard.evaluate("abc").ceiling == 200_000


def test_tokenizer_failure_admits_as_zero():
    def _boom(_text: str) -> int:
        raise RuntimeError("no encoder")

    guard = BudgetGuard(TokenizerAdapter(_boom), BudgetPolicy(ceiling=1))
    decision = guard.evaluate("a very long payload")
    assert decision.count == 0
    assert decision.admitted
