from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class LookupStatus(str, Enum):
    """What a NIF registry says about a number."""

    VALID_KNOWN = "VALID_KNOWN"  # valid, entity identified
    VALID_UNKNOWN = "VALID_UNKNOWN"  # valid, entity not identified
    REJECTED = "REJECTED"  # registry reports the NIF as invalid
    MULTIPLE_RESULTS = "MULTIPLE_RESULTS"  # several entities listed, none selected


@dataclass
class NifLookupResult:
    """Result of a NIF registry lookup.

    Attributes:
        nif: NIF that was looked up.
        status: Registry outcome.
        source: Provider that produced this result.
        entity_name: Registered entity name if available.
        active: Whether the entity is active, when the provider reports it.
        extra: Optional provider-specific data.
    """

    nif: str
    status: LookupStatus
    source: str
    entity_name: Optional[str] = None
    active: Optional[bool] = None
    extra: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.status is LookupStatus.VALID_KNOWN


class LookupUnavailableError(Exception):
    """The lookup service could not answer (unreachable, timeout, bad response).

    This says nothing about the NIF itself.
    """

    def __init__(self, nif: str, reason: str) -> None:
        super().__init__(f"Lookup for NIF {nif} unavailable: {reason}")
        self.nif = nif
        self.reason = reason


class NifLookup(ABC):
    """Abstract base class for NIF registry lookups.

    Implementations receive a NIF already validated locally and raise
    ``LookupUnavailableError`` when the service fails.
    """

    source_name = "unknown"

    @abstractmethod
    def lookup(self, nif: str) -> NifLookupResult:
        """Look up a NIF and return structured result."""
        raise NotImplementedError
