"""Portuguese tax identifier (NIF) validator.

A NIF is 9 ASCII digits:
- the leading digit(s) encode the taxpayer category (e.g., 1-3 individuals,
  45 non-resident individuals, 5 companies, 6 public administration)
- the 9th digit is a modulo-11 check digit over the first eight, with weights
  9, 8, ..., 2 from the left

Validation never raises for malformed input: every failure is reported as a
``ValidationOutcome`` on the returned result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.config_loader import load_yaml_config


class ValidationOutcome(str, Enum):
    """Outcome of a local NIF validation."""

    VALID = "VALID"
    INVALID_LENGTH = "INVALID_LENGTH"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_CHECK_DIGIT = "INVALID_CHECK_DIGIT"


@dataclass(frozen=True)
class NifValidationResult:
    """Result of NIF validation."""

    outcome: ValidationOutcome
    formatted_id: str
    category: Optional[str] = None  # "1", "45", "5", ...
    category_name: Optional[str] = None
    expected_check_digit: Optional[int] = None
    actual_check_digit: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.outcome is ValidationOutcome.VALID

    @property
    def error(self) -> Optional[str]:
        return None if self.is_valid else self.outcome.value


# Leading-digit categories (Autoridade Tributária). Two-digit codes win over
# one-digit codes; a leading 4 is only accepted as 45.
NIF_CATEGORIES: Dict[str, str] = {
    "1": "Pessoa singular",
    "2": "Pessoa singular",
    "3": "Pessoa singular",
    "45": "Pessoa singular não residente",
    "5": "Pessoa coletiva",
    "6": "Administração pública",
    "7": "Herança indivisa / entidade equiparada",
    "8": "Empresário em nome individual",
    "9": "Pessoa coletiva irregular / número provisório",
}

NIF_LENGTH = 9

# ASCII only: \d would also accept other Unicode decimal digits.
_NIF_REGEX = re.compile(r"[0-9]{9}")
_BODY_REGEX = re.compile(r"[0-9]{8}")
_WEIGHTS = (9, 8, 7, 6, 5, 4, 3, 2)


def compute_check_digit(digits: str) -> int:
    """Compute the modulo-11 check digit for the first eight NIF digits.

    Args:
        digits: Exactly 8 ASCII digits.

    Returns:
        The expected 9th digit (0-9).

    Raises:
        ValueError: If ``digits`` is not 8 ASCII digits.
    """
    if not isinstance(digits, str) or not _BODY_REGEX.fullmatch(digits):
        raise ValueError(f"Expected 8 ASCII digits, got {digits!r}")

    total = sum(int(d) * w for d, w in zip(digits, _WEIGHTS))
    remainder = total % 11
    # remainder 0 or 1 would give 11 or 10, both map to 0
    return 0 if remainder < 2 else 11 - remainder


def normalize_nif(raw: str) -> str:
    """Clean up a NIF as typed by a user: trim, drop separators and ``PT`` prefix.

    ``validate`` never calls this; callers opt in explicitly.
    """
    cleaned = re.sub(r"[\s.\-]", "", raw or "").upper()
    if cleaned.startswith("PT"):
        cleaned = cleaned[2:]
    return cleaned


class NifValidator:
    """Validator for Portuguese NIFs."""

    def __init__(self, config_path: Optional[str] = "config/rules/validation_rules.yaml") -> None:
        """Initialize validator with config.

        Args:
            config_path: Path to validation rules YAML. ``None`` skips the file
                and uses the built-in category table.
        """
        categories: Dict[str, Any] = NIF_CATEGORIES
        if config_path is not None:
            try:
                config = load_yaml_config(config_path)
                nif_config = config.get("nif_validation", {}) or {}
                categories = nif_config.get("categories") or NIF_CATEGORIES
            except FileNotFoundError:
                categories = NIF_CATEGORIES

        # YAML may hand back integer keys (1: ...) for unquoted codes
        self.categories: Dict[str, str] = {str(code): str(name) for code, name in categories.items()}

    def category_of(self, nif: str) -> Optional[str]:
        """Return the category code matching the leading digits, or None."""
        for width in (2, 1):
            code = nif[:width]
            if len(code) == width and code in self.categories:
                return code
        return None

    def validate(self, candidate: str) -> NifValidationResult:
        """Validate a NIF candidate.

        Args:
            candidate: Raw string, used as given (no trimming).

        Returns:
            NifValidationResult with the outcome and, when reached, the
            category and check digits.
        """
        if not isinstance(candidate, str) or not _NIF_REGEX.fullmatch(candidate):
            return NifValidationResult(
                outcome=ValidationOutcome.INVALID_LENGTH,
                formatted_id=candidate if isinstance(candidate, str) else "",
            )

        category = self.category_of(candidate)
        if category is None:
            return NifValidationResult(
                outcome=ValidationOutcome.INVALID_CATEGORY,
                formatted_id=candidate,
            )

        expected = compute_check_digit(candidate[:8])
        actual = int(candidate[8])

        return NifValidationResult(
            outcome=ValidationOutcome.VALID if expected == actual else ValidationOutcome.INVALID_CHECK_DIGIT,
            formatted_id=candidate,
            category=category,
            category_name=self.categories[category],
            expected_check_digit=expected,
            actual_check_digit=actual,
        )


_DEFAULT_VALIDATOR = NifValidator(config_path=None)


def validate_nif(candidate: str) -> NifValidationResult:
    """Validate ``candidate`` against the built-in category table."""
    return _DEFAULT_VALIDATOR.validate(candidate)


def is_nif_valid(candidate: str) -> bool:
    return _DEFAULT_VALIDATOR.validate(candidate).is_valid
