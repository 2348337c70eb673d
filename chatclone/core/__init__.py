"""Core module - turn streaming, completions and prompt evaluation."""

from .completion import CompletionService, CompletionResult
from .stream_relay import StreamRelay, TurnState
from .evaluation import EvalStore, run_comparison

__all__ = [
    'CompletionService', 'CompletionResult',
    'StreamRelay', 'TurnState',
    'EvalStore', 'run_comparison',
]
