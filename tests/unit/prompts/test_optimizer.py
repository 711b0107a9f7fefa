"""Context optimizer: hard floor, auxiliary drops, history suffix truncation."""

from __future__ import annotations

import pytest

from prism.errors import TokenLimitExceededError
from prism.prompts.optimizer import ContextOptimizer
from prism.tokens import CallableEstimator, HeuristicEstimator
from prism.types import (
    CodeSnippet,
    ConversationTurn,
    ProjectContext,
    PromptContext,
    PromptInput,
    PromptMetadata,
)

pytestmark = pytest.mark.unit

TURN_PREFIXES = ("user: ", "assistant: ")


def _turns(n: int) -> tuple[ConversationTurn, ...]:
    return tuple(
        ConversationTurn("user" if i % 2 == 0 else "assistant", f"message {i}") for i in range(n)
    )


def _fixed_turn_cost(cost: int) -> CallableEstimator:
    """Every history turn costs *cost*; everything else is free."""
    return CallableEstimator(lambda text: cost if text.startswith(TURN_PREFIXES) else 0)


# =============================================================================
# Hard Floor
# =============================================================================


def test_baseline_over_budget_raises_with_exact_counts():
    optimizer = ContextOptimizer()
    query = "x" * 8000
    baseline = f"You are a helpful AI assistant.\n\nUser: {query}\nAssistant:"
    expected = HeuristicEstimator().estimate(baseline)

    with pytest.raises(TokenLimitExceededError) as exc:
        optimizer.optimize(PromptInput(query), PromptContext(), 2000)

    assert exc.value.token_count == expected
    assert exc.value.max_tokens == 2000
    assert exc.value.token_count > 2000


def test_baseline_exactly_at_budget_still_raises():
    optimizer = ContextOptimizer(CallableEstimator(lambda text: 100 if text else 0))

    with pytest.raises(TokenLimitExceededError):
        optimizer.optimize(PromptInput("q"), PromptContext(), 100)


def test_baseline_is_system_message_and_current_turn_only():
    optimizer = ContextOptimizer()

    assert (
        optimizer.baseline_text(PromptInput("q"))
        == "You are a helpful AI assistant.\n\nUser: q\nAssistant:"
    )


def test_custom_system_message_replaces_default_in_baseline():
    optimizer = ContextOptimizer(default_system_message="Default.")

    assert optimizer.baseline_text(PromptInput("q")).startswith("Default.")
    assert optimizer.baseline_text(PromptInput("q", system_message="Mine.")).startswith("Mine.")


# =============================================================================
# Summary and Memories
# =============================================================================


def _memory_estimator(memory_cost: int, turn_cost: int = 30) -> CallableEstimator:
    def estimate(text: str) -> int:
        if text.startswith(("Previous conversation summary", "Relevant information")):
            return memory_cost
        if text.startswith(TURN_PREFIXES):
            return turn_cost
        return 10

    return CallableEstimator(estimate)


def test_oversized_memories_are_dropped_not_charged_to_the_floor():
    context = PromptContext(history=_turns(2), memories=("m" * 2000,), summary="s")

    result = ContextOptimizer(_memory_estimator(memory_cost=500)).optimize(
        PromptInput("q"), context, 100
    )

    assert result.context.memories == ()
    assert result.context.summary is None
    assert result.context.history == context.history
    assert result.metadata.context_included is False


def test_fitting_memories_reduce_history_budget():
    history = _turns(3)
    context = PromptContext(history=history, memories=("likes tea",))

    result = ContextOptimizer(_memory_estimator(memory_cost=40)).optimize(
        PromptInput("q"), context, 100
    )

    # 100 - 10 baseline - 40 memories leaves room for one 30-token turn.
    assert result.context.memories == ("likes tea",)
    assert result.context.history == history[-1:]
    assert result.metadata.context_included is True


def test_memories_ignored_for_layouts_that_do_not_render_them():
    history = _turns(3)
    context = PromptContext(history=history, memories=("m" * 2000,))

    result = ContextOptimizer(_memory_estimator(memory_cost=500)).optimize(
        PromptInput("q"), context, 100, charge_memory=False
    )

    assert result.context == context
    assert result.metadata == PromptMetadata(context_size=3)


# =============================================================================
# History Truncation
# =============================================================================


def test_keeps_most_recent_suffix_that_fits():
    history = _turns(10)
    optimizer = ContextOptimizer(_fixed_turn_cost(500))

    result = optimizer.optimize(PromptInput("q"), PromptContext(history=history), 2000)

    assert result.context.history == history[-4:]
    assert result.metadata == PromptMetadata(
        context_included=True,
        history_included=True,
        history_truncated=True,
        context_size=4,
    )


def test_stops_at_first_turn_that_overflows():
    # Costs oldest-first: the 300 turn overflows, so the cheap oldest one is lost too.
    costs = {"message 0": 10, "message 1": 300, "message 2": 50, "message 3": 50}
    estimator = CallableEstimator(
        lambda text: next((c for m, c in costs.items() if text.endswith(m)), 0)
    )
    history = _turns(4)

    result = ContextOptimizer(estimator).optimize(
        PromptInput("q"), PromptContext(history=history), 120
    )

    assert result.context.history == history[2:]


def test_all_history_dropped_marks_history_excluded():
    optimizer = ContextOptimizer(_fixed_turn_cost(500))

    result = optimizer.optimize(PromptInput("q"), PromptContext(history=_turns(3)), 400)

    assert result.context.history == ()
    assert result.metadata.history_truncated is True
    assert result.metadata.history_included is False
    assert result.metadata.context_size == 0


def test_no_op_when_everything_fits():
    context = PromptContext(
        history=_turns(4),
        memories=("fact",),
        code_snippets=(CodeSnippet("python", "x = 1"),),
        project=ProjectContext(files=("a.py",), active_file="a.py"),
    )

    result = ContextOptimizer().optimize(PromptInput("q"), context, 8000)

    assert result.context == context
    assert result.metadata == PromptMetadata(context_size=4)


def test_input_context_is_left_untouched():
    history = _turns(10)
    context = PromptContext(history=history)

    ContextOptimizer(_fixed_turn_cost(500)).optimize(PromptInput("q"), context, 1000)

    assert context.history == history


# =============================================================================
# Auxiliary Context
# =============================================================================


def _aux_estimator(snippet_cost: int, project_cost: int) -> CallableEstimator:
    def estimate(text: str) -> int:
        if text.startswith("{"):
            return project_cost
        if text.startswith("SNIPPET"):
            return snippet_cost
        return 0

    return CallableEstimator(estimate)


SNIPPETS = (CodeSnippet("python", "SNIPPET"),)
PROJECT = ProjectContext(files=("a.py", "b.py"))


def test_project_dropped_before_snippets():
    optimizer = ContextOptimizer(_aux_estimator(snippet_cost=60, project_cost=60))

    result = optimizer.optimize(
        PromptInput("q"), PromptContext(code_snippets=SNIPPETS, project=PROJECT), 100
    )

    assert result.context.project is None
    assert result.context.code_snippets == SNIPPETS
    assert result.metadata.context_included is False


def test_snippets_dropped_when_they_alone_do_not_fit():
    optimizer = ContextOptimizer(_aux_estimator(snippet_cost=150, project_cost=10))

    result = optimizer.optimize(
        PromptInput("q"), PromptContext(code_snippets=SNIPPETS, project=PROJECT), 100
    )

    assert result.context.project is None
    assert result.context.code_snippets is None
    assert result.metadata.context_included is False


def test_kept_snippets_reduce_history_budget():
    estimator = CallableEstimator(
        lambda text: 60 if text.startswith("SNIPPET") else (30 if text.startswith(TURN_PREFIXES) else 0)
    )
    history = _turns(3)

    result = ContextOptimizer(estimator).optimize(
        PromptInput("q"), PromptContext(history=history, code_snippets=SNIPPETS), 100
    )

    assert result.context.code_snippets == SNIPPETS
    assert result.context.history == history[-1:]
    assert result.metadata.context_included is True
