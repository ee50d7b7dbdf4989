from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from .base import LookupUnavailableError, NifLookup, NifLookupResult
from .utils.logger import get_logger, log_event
from .utils.retry import call_with_retry
from ..core.nif_validator import NifValidationResult, NifValidator
from ..utils.config_loader import load_yaml_config


DEFAULT_LOOKUP_CONFIG: Dict[str, Any] = {
    "enabled": True,
    "max_attempts": 3,
    "base_delay": 0.5,
    "backoff_factor": 2.0,
}


@dataclass
class NifCheckReport:
    """Local validation plus, for valid NIFs, the registry lookup outcome."""

    nif: str
    validation: NifValidationResult
    lookup: Optional[NifLookupResult] = None
    lookup_error: Optional[str] = None
    checked_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def lookup_attempted(self) -> bool:
        return self.lookup is not None or self.lookup_error is not None


class NifChecker:
    """Runs local NIF validation and, for valid NIFs only, the optional lookup."""

    def __init__(
        self,
        lookup: Optional[NifLookup] = None,
        config_path: str = "config/nif_config.yaml",
        validator: Optional[NifValidator] = None,
    ) -> None:
        self.logger = get_logger("checker")
        self.validator = validator or NifValidator()
        self.lookup_provider = lookup
        self.lookup_config = dict(DEFAULT_LOOKUP_CONFIG)

        try:
            config = load_yaml_config(config_path)
            self.lookup_config.update(config.get("lookup", {}) or {})
        except FileNotFoundError:
            log_event(self.logger, 20, "Checker config not found, using defaults", {"path": config_path})

    @property
    def lookup_enabled(self) -> bool:
        return self.lookup_provider is not None and bool(self.lookup_config.get("enabled", True))

    def check(self, candidate: str) -> NifCheckReport:
        validation = self.validator.validate(candidate)
        report = NifCheckReport(nif=validation.formatted_id, validation=validation)

        # Never spend a lookup on a NIF that fails locally
        if not validation.is_valid or not self.lookup_enabled:
            return report

        try:
            report.lookup = call_with_retry(
                self.lookup_provider.lookup,
                validation.formatted_id,
                exceptions=(LookupUnavailableError,),
                max_attempts=int(self.lookup_config["max_attempts"]),
                base_delay=float(self.lookup_config["base_delay"]),
                backoff_factor=float(self.lookup_config["backoff_factor"]),
            )
        except LookupUnavailableError as exc:
            log_event(
                self.logger,
                40,
                "NIF lookup unavailable",
                {"nif": validation.formatted_id, "source": self.lookup_provider.source_name, "error": exc.reason},
            )
            report.lookup_error = exc.reason
            return report

        log_event(
            self.logger,
            20,
            "NIF lookup completed",
            {"nif": validation.formatted_id, "source": report.lookup.source, "status": report.lookup.status.value},
        )
        return report
