"""Prompt-side data model."""

from __future__ import annotations

import pytest

from prism.errors import ConfigurationError
from prism.tools import CanonicalTool
from prism.types import (
    CodeSnippet,
    ConversationTurn,
    ProjectContext,
    PromptContext,
    PromptInput,
    turns_from_interactions,
)
from tests.conftest import WEATHER_TOOL

pytestmark = pytest.mark.unit


class TestPromptInput:
    def test_rejects_non_string_query(self):
        with pytest.raises(ConfigurationError, match="query must be a string"):
            PromptInput(None)  # type: ignore[arg-type]

    def test_rejects_unknown_output_format(self):
        with pytest.raises(ConfigurationError, match="output_format"):
            PromptInput("hi", output_format="xml")  # type: ignore[arg-type]

    def test_empty_query_is_allowed(self):
        assert PromptInput("").query == ""


class TestConversationTurn:
    def test_labels(self):
        assert ConversationTurn("user", "a").label == "User"
        assert ConversationTurn("assistant", "b").label == "Assistant"

    def test_rejects_unknown_role(self):
        with pytest.raises(ConfigurationError, match="role"):
            ConversationTurn("system", "x")  # type: ignore[arg-type]


def test_interactions_expand_to_ordered_turns():
    turns = turns_from_interactions(
        [{"input": "hi", "response": "hello"}, {"input": "bye", "response": "ciao"}]
    )

    assert [(t.role, t.content) for t in turns] == [
        ("user", "hi"),
        ("assistant", "hello"),
        ("user", "bye"),
        ("assistant", "ciao"),
    ]


def test_project_to_dict_uses_camel_case_active_file():
    assert ProjectContext(files=["a.py"], active_file="a.py").to_dict() == {
        "files": ["a.py"],
        "activeFile": "a.py",
    }
    assert ProjectContext().to_dict() == {"files": []}


class TestPromptContext:
    def test_lists_become_tuples_and_tools_are_coerced(self):
        context = PromptContext(
            history=[ConversationTurn("user", "x")],
            memories=["m"],
            code_snippets=[CodeSnippet("python", "x")],
            function_definitions=[WEATHER_TOOL],
        )

        assert isinstance(context.history, tuple)
        assert context.memories == ("m",)
        assert isinstance(context.code_snippets, tuple)
        assert isinstance(context.function_definitions[0], CanonicalTool)

    def test_invalid_function_definitions_raise(self):
        with pytest.raises(ConfigurationError):
            PromptContext(function_definitions=[{"function": {}}])

    def test_with_history_returns_new_context(self):
        original = PromptContext(history=(ConversationTurn("user", "x"),), summary="s")

        updated = original.with_history(())

        assert updated.history == ()
        assert updated.summary == "s"
        assert len(original.history) == 1

    def test_from_mapping_accepts_camel_case_and_interactions(self):
        context = PromptContext.from_mapping(
            {
                "history": [
                    {"input": "hi", "response": "hello"},
                    {"role": "user", "content": "more"},
                ],
                "memories": ["likes tea"],
                "summary": "greeting",
                "codeSnippets": [{"language": "python", "code": "x = 1", "path": "a.py"}],
                "project": {"files": ["a.py"], "activeFile": "a.py"},
                "functionDefinitions": [WEATHER_TOOL],
                "tokenOptimization": True,
            }
        )

        assert [t.content for t in context.history] == ["hi", "hello", "more"]
        assert context.memories == ("likes tea",)
        assert context.code_snippets == (CodeSnippet("python", "x = 1", "a.py"),)
        assert context.project == ProjectContext(files=("a.py",), active_file="a.py")
        assert context.function_definitions[0].name == "get_weather"
        assert context.token_optimization is True

    def test_from_mapping_snake_case_and_defaults(self):
        context = PromptContext.from_mapping({"code_snippets": [], "token_optimization": False})

        assert context.history == ()
        assert context.code_snippets == ()
        assert context.project is None
        assert context.function_definitions is None
        assert context.token_optimization is False
