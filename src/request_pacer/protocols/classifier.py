# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for response classification."""

from typing import Any, Protocol, runtime_checkable

from ..types.result import TaskResult


@runtime_checkable
class ClassifierProtocol(Protocol):
    """
    Protocol for turning a task's raw outcome into a TaskResult.

    The scheduler is agnostic to wire formats. Callers supply a classifier
    that knows how their provider signals rejections, retry-after hints and
    remaining-count hints.
    """

    def classify(self, response: Any) -> TaskResult:
        """
        Classify a raw response returned by a task.

        Args:
            response: Whatever the task returned

        Returns:
            TaskResult describing how the scheduler should react
        """
        ...

    def is_transport_error(self, error: BaseException) -> bool:
        """
        Decide whether an exception raised by a task is a transient transport
        failure (retried) or a terminal error (propagated to the caller).
        """
        ...
