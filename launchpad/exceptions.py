"""Exception types for faults that are not expected operational outcomes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from launchpad.models.workflow import WorkflowResult


class LaunchpadError(Exception):
    """Base class for all launchpad faults."""


class ConfigurationError(LaunchpadError):
    """Required credentials or registrant data are missing."""


class InvalidDomainError(LaunchpadError, ValueError):
    """Domain name is syntactically invalid."""


class ProviderError(LaunchpadError):
    """A provider call returned a non-success result inside a retried operation."""


class WorkflowAbortedError(LaunchpadError):
    """An unexpected fault escaped a saga step after compensation ran.

    The partial result, including the compensation report, is attached.
    """

    def __init__(self, message: str, result: WorkflowResult) -> None:
        super().__init__(message)
        self.result = result
