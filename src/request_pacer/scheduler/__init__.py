# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request scheduling: admission, pacing, retry and the Scheduler itself.

This module provides:
- Scheduler, create_scheduler: The per-API rate-limited executor
- SchedulerConfig: Immutable configuration for one scheduler
- SchedulerState: Mutable bookkeeping owned by one scheduler
- AdmissionController: FIFO slot admission
- Pacer: Dispatch spacing and pre-emptive pauses
- RetryPolicy: Bounded retry delay schedule
"""

from .admission import AdmissionController
from .config import SchedulerConfig
from .pacing import Pacer
from .retry import RetryPolicy
from .scheduler import Scheduler, create_scheduler
from .state import SchedulerState

__all__ = [
    "AdmissionController",
    "Pacer",
    "RetryPolicy",
    "Scheduler",
    "SchedulerConfig",
    "SchedulerState",
    "create_scheduler",
]
