"""
Error taxonomy for bootstrap stages.

Stage actions raise these; the pipeline driver decides what each one
means for the run.  ``fatal`` is the default classification: a fatal
error on a required stage aborts the run, anything else is reported as
a warning and the pipeline moves on.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for every classified stage failure."""

    fatal: bool = True


class MissingRequiredCapability(BootstrapError):
    """A required tool is absent and nothing could provide it."""


class NoRemediationAvailable(MissingRequiredCapability):
    """No remediation candidate's detector matched this host."""


class RemediationIneffective(BootstrapError):
    """An install ran but the capability is still missing."""


class TransportUnreachable(BootstrapError):
    """The preferred remote transport could not be reached."""

    fatal = False


class CloneFailed(BootstrapError):
    """The repository could not be cloned over any transport."""


class SyncConflict(BootstrapError):
    """The local checkout could not be fast-forwarded."""

    fatal = False


class OptionalStageUnavailable(BootstrapError):
    """A best-effort stage could not run on this host."""

    fatal = False


class ConfigError(BootstrapError):
    """The bootstrap configuration is invalid or unreadable."""
