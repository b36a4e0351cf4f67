"""
Mock implementations for testing devstrap components.

This package provides fakes for external processes and durable environment
state so installers can be exercised without touching the system.
"""

from .environment import InMemoryEnvironmentStore
from .process import FakeRunner

__all__ = [
    "FakeRunner",
    "InMemoryEnvironmentStore",
]
