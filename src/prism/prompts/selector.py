"""Deterministic template selection.

Rules are evaluated top to bottom and the first match wins; the order is part
of the contract (for example function definitions beat code snippets).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prism.types import PromptContext, PromptInput

#: History longer than this switches to the compact template.
COMPACT_HISTORY_THRESHOLD = 5


def select_template(prompt_input: PromptInput, context: PromptContext) -> str:
    """Return the template id that best fits the request. Never raises."""
    if prompt_input.output_format == "json":
        return "structured"

    query = (prompt_input.query or "").lower()
    if prompt_input.language or ("code" in query and "generate" in query):
        return "code-generation"

    if context.function_definitions:
        return "function-calling"

    # NOTE: either signal forces compact, even when snippets/project are present.
    if context.token_optimization is True or (
        len(context.history) > COMPACT_HISTORY_THRESHOLD
    ):
        return "compact"

    # An empty snippet list counts as absent.
    if context.code_snippets or context.project is not None:
        return "structured"

    return "standard"
