"""Budget guard: admit or reject a payload by its token estimate."""

from __future__ import annotations

from azure_text_processor.core.types import BudgetDecision, BudgetPolicy
from azure_text_processor.tokens import TokenizerAdapter


class BudgetGuard:
    """Counts a payload's tokens and compares the count against a ceiling.

    `admitted` is the only hard gate. `warn` and `severe` fire at the policy's
    fractions of the ceiling and are meant for display.
    """

    def __init__(
        self,
        tokenizer: TokenizerAdapter | None = None,
        policy: BudgetPolicy | None = None,
    ) -> None:
        self.tokenizer = tokenizer or TokenizerAdapter()
        self.policy = policy or BudgetPolicy()

    def evaluate(self, payload: str, ceiling: int | None = None) -> BudgetDecision:
        """Return the decision for ``payload``; ``ceiling`` overrides the policy."""
        limit = self.policy.ceiling if ceiling is None else ceiling
        if limit < 1:
            raise ValueError(f"ceiling must be >= 1, got {limit}")
        count = self.tokenizer.count(payload)
        return BudgetDecision(
            count=count,
            ceiling=limit,
            admitted=count <= limit,
            warn=count >= self.policy.warn_ratio * limit,
            severe=count >= self.policy.severe_ratio * limit,
        )
