# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for pluggable scheduler components.

Available protocols:
- ClassifierProtocol: Interface for classifying task outcomes
"""

from .classifier import ClassifierProtocol

__all__ = [
    "ClassifierProtocol",
]
