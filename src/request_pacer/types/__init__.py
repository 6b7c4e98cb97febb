# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions."""

from .result import ResultKind, Task, TaskResult

__all__ = [
    "ResultKind",
    "Task",
    "TaskResult",
]
