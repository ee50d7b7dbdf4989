from __future__ import annotations

from pathlib import Path
from typing import Optional, Dict, Any, Union

from ...base import LookupStatus, NifLookup, NifLookupResult
from ...utils.logger import get_logger, log_event
from ....utils.config_loader import load_yaml_config


_ACTIVE_STATES = {"ACTIVE": True, "INACTIVE": False}


class IndexNifLookup(NifLookup):
    """NIF lookup backed by an in-memory index.

    The index maps NIF -> entry, e.g.::

        {"500960046": {"name": "Empresa, S.A.", "status": "ACTIVE"},
         "000000000": {"entities": ["A", "B"]},
         "123456789": {"status": "REJECTED"}}

    NIFs missing from the index are reported as valid but unknown.
    """

    source_name = "local_index"

    def __init__(self, index: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.logger = get_logger("lookup.index")
        self.index = {str(nif): entry or {} for nif, entry in (index or {}).items()}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "IndexNifLookup":
        """Build the index from the ``nifs`` mapping of a YAML file."""
        config = load_yaml_config(path)
        lookup = cls(index=config.get("nifs", {}))
        log_event(
            lookup.logger,
            level=20,
            message="Loaded NIF index",
            extra={"path": str(path), "entries": len(lookup.index)},
        )
        return lookup

    def lookup(self, nif: str) -> NifLookupResult:
        entry = self.index.get(nif)
        if entry is None:
            return NifLookupResult(nif=nif, status=LookupStatus.VALID_UNKNOWN, source=self.source_name)

        status = str(entry.get("status", "")).upper()
        if status == "REJECTED":
            return NifLookupResult(nif=nif, status=LookupStatus.REJECTED, source=self.source_name)

        entities = entry.get("entities") or []
        if len(entities) > 1:
            return NifLookupResult(
                nif=nif,
                status=LookupStatus.MULTIPLE_RESULTS,
                source=self.source_name,
                extra={"entities": list(entities)},
            )

        name = entry.get("name") or (entities[0] if entities else None)
        if not name:
            return NifLookupResult(nif=nif, status=LookupStatus.VALID_UNKNOWN, source=self.source_name)

        return NifLookupResult(
            nif=nif,
            status=LookupStatus.VALID_KNOWN,
            source=self.source_name,
            entity_name=name,
            active=_ACTIVE_STATES.get(status),
            extra={"raw": dict(entry)},
        )
