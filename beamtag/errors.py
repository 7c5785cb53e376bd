"""Exception hierarchy shared by the decoder and the taggers built on it.

The engine distinguishes between bad arguments (rejected before any search
work starts), a broken classifier model (fatal, never retried), and a
misbehaving pluggable collaborator such as a context generator or a sequence
validator. A beam that dies because the validator rejected every candidate is
not an exception at the engine level; it is reported as an empty result.
"""
from __future__ import annotations

__all__ = [
    "BeamTagError",
    "InvalidArgumentError",
    "ModelEvaluationError",
    "ContractViolationError",
    "NoValidSequenceError",
]


class BeamTagError(Exception):
    """Base class for all errors raised by :mod:`beamtag`."""


class InvalidArgumentError(BeamTagError, ValueError):
    """Raised when a caller passes an argument outside the accepted domain."""


class ModelEvaluationError(BeamTagError, RuntimeError):
    """Raised when the classifier model fails or returns a malformed distribution."""


class ContractViolationError(BeamTagError, RuntimeError):
    """Raised when a context generator or validator breaks its interface contract."""


class NoValidSequenceError(BeamTagError, LookupError):
    """Raised by tagger wrappers when no label sequence satisfies the validator."""
