"""Prompt construction: template selection, context budgeting, rendering."""

from .manager import PromptConfig, PromptManager
from .optimizer import ContextOptimizer, OptimizedContext
from .selector import select_template
from .templates import BUILTIN_TEMPLATES, PromptTemplate

__all__ = [
    "BUILTIN_TEMPLATES",
    "ContextOptimizer",
    "OptimizedContext",
    "PromptConfig",
    "PromptManager",
    "PromptTemplate",
    "select_template",
]
