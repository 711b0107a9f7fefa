"""Built-in prompt templates.

Each template is a pure ``construct(input, context) -> str`` with a fixed
layout. Blocks with no data are omitted rather than rendered empty, so the
``standard`` layout with no history is exactly the optimizer's baseline
skeleton: ``"{system}\\n\\nUser: {query}\\nAssistant:"``.

Only ``standard`` renders the conversation summary and memories, as two
optional paragraphs after the system message. The other layouts leave them
out and set ``renders_memory=False`` so they are not budgeted.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from prism.types import CodeSnippet, ConversationTurn, PromptContext, PromptInput

DEFAULT_SYSTEM_MESSAGE = "You are a helpful AI assistant."
COMPACT_SYSTEM_MESSAGE = "You are a helpful assistant."
FUNCTION_CALLING_SYSTEM_MESSAGE = (
    "You are a helpful AI assistant with access to functions. When appropriate, "
    "use the available functions rather than generating information yourself."
)
DEFAULT_CODE_LANGUAGE = "javascript"

_JS_STANDARDS = (
    "- Use modern ES6+ syntax",
    "- Prefer const over let, avoid var",
    "- Use descriptive variable and function names",
    "- Add JSDoc comments for functions",
    "- Handle errors appropriately",
)
_PYTHON_STANDARDS = (
    "- Follow PEP 8 style guidelines",
    "- Use descriptive variable and function names",
    "- Add docstrings for functions and classes",
    "- Use type hints when appropriate",
    "- Handle exceptions appropriately",
)
CODING_STANDARDS: dict[str, tuple[str, ...]] = {
    "javascript": _JS_STANDARDS,
    "typescript": _JS_STANDARDS,
    "python": _PYTHON_STANDARDS,
}


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt layout."""

    id: str
    name: str
    description: str
    construct: Callable[[PromptInput, PromptContext], str]
    tags: tuple[str, ...] = ()
    #: Overrides the manager's default budget when set.
    token_limit: int | None = None
    #: Whether ``construct`` renders the summary and memories, so the
    #: optimizer must budget for them.
    renders_memory: bool = True


# --- Shared blocks ---


def format_history(history: Sequence[ConversationTurn]) -> str:
    return "\n\n".join(f"{turn.label}: {turn.content}" for turn in history)


def format_snippets(snippets: Sequence[CodeSnippet]) -> str:
    blocks = []
    for snippet in snippets:
        block = f"```{snippet.language}\n{snippet.code}\n```"
        if snippet.path:
            block += f"\nFile: {snippet.path}"
        blocks.append(block)
    return "\n\n".join(blocks)


def summary_block(context: PromptContext) -> str | None:
    if not context.summary:
        return None
    return f"Previous conversation summary: {context.summary}"


def memories_block(context: PromptContext) -> str | None:
    if not context.memories:
        return None
    return "Relevant information from previous conversations:\n" + "\n".join(
        context.memories
    )


def current_turn(query: str) -> str:
    return f"User: {query}\nAssistant:"


def _join(blocks: Sequence[str | None], sep: str = "\n\n") -> str:
    return sep.join(b for b in blocks if b)


# --- Templates ---


def _standard(prompt_input: PromptInput, context: PromptContext) -> str:
    return _join(
        [
            prompt_input.system_message or DEFAULT_SYSTEM_MESSAGE,
            summary_block(context),
            memories_block(context),
            format_history(context.history),
            current_turn(prompt_input.query),
        ]
    )


def _structured(prompt_input: PromptInput, context: PromptContext) -> str:
    system = prompt_input.system_message or DEFAULT_SYSTEM_MESSAGE
    if prompt_input.output_format:
        system += f"\n\nPlease format your response as {prompt_input.output_format}."
    sections = [f"## SYSTEM INSTRUCTIONS\n{system}"]

    if context.project is not None:
        project = f"## PROJECT CONTEXT\nFiles in project: {', '.join(context.project.files)}"
        if context.project.active_file:
            project += f"\nCurrent file: {context.project.active_file}"
        sections.append(project)
    if context.code_snippets:
        sections.append(f"## RELEVANT CODE\n{format_snippets(context.code_snippets)}")
    if context.history:
        sections.append(f"## CONVERSATION HISTORY\n{format_history(context.history)}")

    sections.append(f"## CURRENT QUERY\n{prompt_input.query}")
    sections.append("## YOUR RESPONSE")
    return _join(sections)


def _compact(prompt_input: PromptInput, context: PromptContext) -> str:
    recent = context.history[-2:]
    return _join(
        [
            prompt_input.system_message or COMPACT_SYSTEM_MESSAGE,
            "\n".join(f"{turn.role[0].upper()}:{turn.content}" for turn in recent),
            f"U:{prompt_input.query}\nA:",
        ],
        sep="\n",
    )


def _function_calling(prompt_input: PromptInput, context: PromptContext) -> str:
    blocks = [prompt_input.system_message or FUNCTION_CALLING_SYSTEM_MESSAGE]
    if context.function_definitions:
        definitions = [t.model_dump(mode="json") for t in context.function_definitions]
        blocks.append(f"AVAILABLE FUNCTIONS:\n{json.dumps(definitions, indent=2)}")
    if context.history:
        blocks.append(f"CONVERSATION HISTORY:\n{format_history(context.history)}")
    blocks.append(current_turn(prompt_input.query))
    return _join(blocks)


def _code_generation(prompt_input: PromptInput, context: PromptContext) -> str:
    language = prompt_input.language or DEFAULT_CODE_LANGUAGE
    blocks = [
        prompt_input.system_message
        or (
            f"You are an expert programmer specializing in {language}. "
            "Generate clean, well-documented, and efficient code."
        )
    ]
    if context.project is not None:
        project = f"## PROJECT CONTEXT\nFiles: {', '.join(context.project.files)}"
        if context.project.active_file:
            project += f"\nCurrently editing: {context.project.active_file}"
        blocks.append(project)
    if context.code_snippets:
        blocks.append(f"## EXISTING CODE\n{format_snippets(context.code_snippets)}")

    standards = CODING_STANDARDS.get(language.lower())
    if standards:
        blocks.append("## CODING STANDARDS\n" + "\n".join(standards))

    blocks.append(f"## CODE REQUEST\n{prompt_input.query}")
    blocks.append(
        f"## YOUR SOLUTION\nPlease provide the {language} code implementation:"
    )
    return _join(blocks)


STANDARD = PromptTemplate(
    id="standard",
    name="Standard Chat",
    description="A general-purpose template for conversational interactions",
    construct=_standard,
    tags=("general", "conversation"),
)
STRUCTURED = PromptTemplate(
    id="structured",
    name="Structured Template",
    description="A template with clear sections for different types of context",
    construct=_structured,
    tags=("detailed", "complex"),
    renders_memory=False,
)
COMPACT = PromptTemplate(
    id="compact",
    name="Compact Template",
    description="A minimal template optimized for token efficiency",
    construct=_compact,
    tags=("efficient", "minimal"),
    renders_memory=False,
)
FUNCTION_CALLING = PromptTemplate(
    id="function-calling",
    name="Function Calling Template",
    description="A template optimized for function calling scenarios",
    construct=_function_calling,
    tags=("function", "tool", "api"),
    renders_memory=False,
)
CODE_GENERATION = PromptTemplate(
    id="code-generation",
    name="Code Generation Template",
    description="A template optimized for generating code in a specific language",
    construct=_code_generation,
    tags=("code", "programming", "development"),
    renders_memory=False,
)

BUILTIN_TEMPLATES: tuple[PromptTemplate, ...] = (
    STANDARD,
    STRUCTURED,
    COMPACT,
    FUNCTION_CALLING,
    CODE_GENERATION,
)
