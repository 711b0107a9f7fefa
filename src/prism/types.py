"""Prompt-side data model.

All values are created per call and never mutated; ``history`` is kept
oldest-first through every transformation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from prism.errors import ConfigurationError
from prism.tools import CanonicalTool, coerce_tools

Role = Literal["user", "assistant"]
OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class PromptInput:
    """The current request."""

    query: str
    system_message: str | None = None
    output_format: OutputFormat | None = None
    #: Programming language for code-generation requests.
    language: str | None = None
    #: Agent role; selects a template through ``PromptConfig.agent_templates``.
    agent: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.query, str):
            raise ConfigurationError(
                "query must be a string",
                hint="Pass PromptInput(query='...').",
            )
        if self.output_format not in (None, "text", "json"):
            raise ConfigurationError(
                f"Unsupported output_format: {self.output_format!r}",
                hint="Use 'text' or 'json'.",
            )


@dataclass(frozen=True)
class ConversationTurn:
    """One message of a past exchange."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in ("user", "assistant"):
            raise ConfigurationError(
                f"Unknown conversation role: {self.role!r}",
                hint="History turns use role 'user' or 'assistant'.",
            )

    @property
    def label(self) -> str:
        return "User" if self.role == "user" else "Assistant"


def turns_from_interactions(
    interactions: Sequence[Mapping[str, Any]],
) -> tuple[ConversationTurn, ...]:
    """Expand ``{input, response}`` exchange pairs into ordered turns."""
    turns: list[ConversationTurn] = []
    for item in interactions:
        turns.append(ConversationTurn("user", str(item.get("input", ""))))
        turns.append(ConversationTurn("assistant", str(item.get("response", ""))))
    return tuple(turns)


@dataclass(frozen=True)
class CodeSnippet:
    language: str
    code: str
    path: str | None = None


@dataclass(frozen=True)
class ProjectContext:
    files: tuple[str, ...] = ()
    active_file: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"files": list(self.files)}
        if self.active_file is not None:
            data["activeFile"] = self.active_file
        return data


@dataclass(frozen=True)
class PromptContext:
    """Everything that may be packed around the query."""

    history: tuple[ConversationTurn, ...] = ()
    memories: tuple[str, ...] = ()
    summary: str | None = None
    code_snippets: tuple[CodeSnippet, ...] | None = None
    project: ProjectContext | None = None
    function_definitions: tuple[CanonicalTool, ...] | None = None
    token_optimization: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "history", tuple(self.history))
        object.__setattr__(self, "memories", tuple(self.memories))
        if self.code_snippets is not None:
            object.__setattr__(self, "code_snippets", tuple(self.code_snippets))
        if self.function_definitions is not None:
            object.__setattr__(
                self,
                "function_definitions",
                tuple(coerce_tools(list(self.function_definitions))),
            )

    def with_history(self, history: Sequence[ConversationTurn]) -> PromptContext:
        return replace(self, history=tuple(history))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PromptContext:
        """Build a context from plain dicts (camelCase or snake_case keys)."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        history: list[ConversationTurn] = []
        for item in pick("history") or ():
            if isinstance(item, ConversationTurn):
                history.append(item)
            elif "role" in item:
                history.append(ConversationTurn(item["role"], str(item.get("content", ""))))
            else:
                history.extend(turns_from_interactions([item]))

        snippets_raw = pick("code_snippets", "codeSnippets")
        snippets = None
        if snippets_raw is not None:
            snippets = tuple(
                s
                if isinstance(s, CodeSnippet)
                else CodeSnippet(
                    language=s.get("language", ""),
                    code=s.get("code", ""),
                    path=s.get("path"),
                )
                for s in snippets_raw
            )

        project_raw = pick("project")
        project = None
        if isinstance(project_raw, ProjectContext):
            project = project_raw
        elif project_raw is not None:
            project = ProjectContext(
                files=tuple(project_raw.get("files", ())),
                active_file=project_raw.get("active_file", project_raw.get("activeFile")),
            )

        return cls(
            history=tuple(history),
            memories=tuple(pick("memories") or ()),
            summary=pick("summary"),
            code_snippets=snippets,
            project=project,
            function_definitions=pick("function_definitions", "functionDefinitions"),
            token_optimization=bool(pick("token_optimization", "tokenOptimization")),
        )


@dataclass(frozen=True)
class PromptMetadata:
    context_included: bool = True
    history_included: bool = True
    history_truncated: bool = False
    context_size: int = 0


@dataclass(frozen=True)
class PromptResult:
    """A rendered prompt plus what had to be cut to fit it."""

    prompt: str
    estimated_tokens: int
    truncated: bool
    template_used: str
    metadata: PromptMetadata = field(default_factory=PromptMetadata)
