"""Tests for the NIF checker and the lookup collaborator interface."""

from unittest.mock import Mock

import pytest

from nifcheck.api_manager.base import (
    LookupStatus,
    LookupUnavailableError,
    NifLookup,
    NifLookupResult,
)
from nifcheck.api_manager.nif_checker import NifChecker
from nifcheck.api_manager.utils import retry
from nifcheck.api_manager.validators.nif.index_lookup import IndexNifLookup
from nifcheck.core.nif_validator import ValidationOutcome


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip real backoff delays."""
    monkeypatch.setattr(retry.time, "sleep", lambda _delay: None)


class FlakyLookup(NifLookup):
    """Lookup that fails a fixed number of times before answering."""

    source_name = "flaky"

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def lookup(self, nif: str) -> NifLookupResult:
        self.calls += 1
        if self.calls <= self.failures:
            raise LookupUnavailableError(nif, "connection refused")
        return NifLookupResult(nif=nif, status=LookupStatus.VALID_KNOWN, source=self.source_name, entity_name="X")


class TestIndexNifLookup:
    """Tests for IndexNifLookup."""

    INDEX = {
        "500960046": {"name": "Empresa Exemplo, S.A.", "status": "ACTIVE"},
        "500829993": {"name": "Antiga, Lda.", "status": "inactive"},
        "123456789": {"status": "REJECTED"},
        "100000002": {"entities": ["Empresa A", "Empresa B"]},
        "200000004": {"entities": ["Sozinha, Lda."]},
    }

    def test_known_entity(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("500960046")
        assert result.status is LookupStatus.VALID_KNOWN
        assert result.exists
        assert result.entity_name == "Empresa Exemplo, S.A."
        assert result.active is True
        assert result.source == "local_index"

    def test_inactive_entity(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("500829993")
        assert result.status is LookupStatus.VALID_KNOWN
        assert result.active is False

    def test_unknown_nif(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("600000001")
        assert result.status is LookupStatus.VALID_UNKNOWN
        assert not result.exists
        assert result.entity_name is None

    def test_rejected_nif(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("123456789")
        assert result.status is LookupStatus.REJECTED

    def test_multiple_results(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("100000002")
        assert result.status is LookupStatus.MULTIPLE_RESULTS
        assert result.extra == {"entities": ["Empresa A", "Empresa B"]}

    def test_single_entity_list(self) -> None:
        result = IndexNifLookup(self.INDEX).lookup("200000004")
        assert result.status is LookupStatus.VALID_KNOWN
        assert result.entity_name == "Sozinha, Lda."
        assert result.active is None

    def test_from_yaml(self, tmp_path) -> None:
        index_file = tmp_path / "index.yaml"
        index_file.write_text(
            "nifs:\n"
            "  '500960046':\n"
            "    name: Empresa Exemplo, S.A.\n"
            "    status: ACTIVE\n"
            "  600000001:\n"
            "    name: Município\n",
            encoding="utf-8",
        )
        lookup = IndexNifLookup.from_yaml(index_file)

        assert lookup.lookup("500960046").entity_name == "Empresa Exemplo, S.A."
        assert lookup.lookup("600000001").status is LookupStatus.VALID_KNOWN


class TestNifChecker:
    """Tests for NifChecker."""

    def test_invalid_nif_never_reaches_lookup(self) -> None:
        lookup = Mock(spec=NifLookup)
        checker = NifChecker(lookup=lookup)

        for nif in ("", "12345678A", "000000000", "123456780"):
            report = checker.check(nif)
            assert not report.validation.is_valid
            assert report.lookup is None
            assert report.lookup_error is None
            assert not report.lookup_attempted

        lookup.lookup.assert_not_called()

    def test_valid_nif_without_lookup(self) -> None:
        report = NifChecker().check("500960046")
        assert report.validation.is_valid
        assert report.nif == "500960046"
        assert not report.lookup_attempted
        assert report.checked_at

    def test_valid_nif_with_lookup(self) -> None:
        lookup = IndexNifLookup({"500960046": {"name": "Empresa Exemplo, S.A.", "status": "ACTIVE"}})
        report = NifChecker(lookup=lookup).check("500960046")

        assert report.validation.outcome is ValidationOutcome.VALID
        assert report.lookup is not None
        assert report.lookup.exists
        assert report.lookup.active is True
        assert report.lookup_error is None

    def test_lookup_retries_then_succeeds(self) -> None:
        lookup = FlakyLookup(failures=2)
        report = NifChecker(lookup=lookup).check("500960046")

        assert lookup.calls == 3
        assert report.lookup is not None
        assert report.lookup.status is LookupStatus.VALID_KNOWN
        assert report.lookup_error is None

    def test_unavailable_lookup_is_not_an_invalid_nif(self) -> None:
        lookup = FlakyLookup(failures=10)
        report = NifChecker(lookup=lookup).check("500960046")

        assert lookup.calls == 3  # max_attempts from config/nif_config.yaml
        assert report.validation.is_valid
        assert report.lookup is None
        assert report.lookup_error == "connection refused"
        assert report.lookup_attempted

    def test_other_errors_propagate(self) -> None:
        lookup = Mock(spec=NifLookup)
        lookup.source_name = "mock"
        lookup.lookup.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            NifChecker(lookup=lookup).check("500960046")
        assert lookup.lookup.call_count == 1

    def test_config_disables_lookup(self, tmp_path) -> None:
        config = tmp_path / "nif_config.yaml"
        config.write_text("lookup:\n  enabled: false\n", encoding="utf-8")
        lookup = Mock(spec=NifLookup)

        checker = NifChecker(lookup=lookup, config_path=str(config))
        report = checker.check("500960046")

        assert not checker.lookup_enabled
        assert report.validation.is_valid
        assert not report.lookup_attempted
        lookup.lookup.assert_not_called()

    def test_config_max_attempts(self, tmp_path) -> None:
        config = tmp_path / "nif_config.yaml"
        config.write_text("lookup:\n  max_attempts: 1\n", encoding="utf-8")
        lookup = FlakyLookup(failures=1)

        report = NifChecker(lookup=lookup, config_path=str(config)).check("500960046")

        assert lookup.calls == 1
        assert report.lookup_error == "connection refused"

    def test_missing_config_uses_defaults(self, tmp_path) -> None:
        checker = NifChecker(config_path=str(tmp_path / "missing.yaml"))
        assert checker.lookup_config["max_attempts"] == 3
        assert checker.lookup_config["enabled"] is True


def test_lookup_unavailable_error_keeps_context() -> None:
    exc = LookupUnavailableError("500960046", "timeout")
    assert exc.nif == "500960046"
    assert exc.reason == "timeout"
    assert "500960046" in str(exc)


def test_call_with_retry_reraises_after_max_attempts() -> None:
    func = Mock(side_effect=LookupUnavailableError("500960046", "down"))
    func.__name__ = "lookup"

    with pytest.raises(LookupUnavailableError):
        retry.call_with_retry(func, "500960046", exceptions=(LookupUnavailableError,), max_attempts=2)
    assert func.call_count == 2


def test_checker_logs_lookup_failure(caplog) -> None:
    from nifcheck.api_manager.utils.logger import get_logger

    logger = get_logger("checker")
    assert logger.name == "nifcheck.checker"
    logger.propagate = True
    try:
        with caplog.at_level("ERROR", logger="nifcheck.checker"):
            NifChecker(lookup=FlakyLookup(failures=10)).check("500960046")
    finally:
        logger.propagate = False

    assert "NIF lookup unavailable" in caplog.text
    assert "connection refused" in caplog.text
