"""
ADHDone personalization helpers.

Tracks reminder interactions to surface adaptive suggestions when a task is
skipped repeatedly, and organizes brain dump entries into actionable groups,
using a completion service when an API key is available.
"""

from .api import AdhdoneAI
from .config import Settings, load_settings
from .errors import (
    AdhdoneError,
    CompletionError,
    InvalidArgument,
    MalformedResponse,
    MissingCredential,
    RequestFailed,
    StorageFailure,
)
from .models import AppState, BrainDumpResult, Suggestion

__all__ = [
    'AdhdoneAI',
    'Settings',
    'load_settings',
    'AppState',
    'Suggestion',
    'BrainDumpResult',
    'AdhdoneError',
    'InvalidArgument',
    'StorageFailure',
    'CompletionError',
    'MissingCredential',
    'RequestFailed',
    'MalformedResponse',
]
