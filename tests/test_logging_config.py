"""
Tests for structured logging
"""

import io
import json
import logging

import pytest

from simplets.ledger import Domain
from simplets.logging_config import JSONFormatter, setup_logging, log_action, get_logger
from simplets.storage import InMemoryStorage


@pytest.fixture
def captured():
    """Attach a JSON handler to the ledger logger"""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger = get_logger("simplets.ledger")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield stream
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


def lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestJSONFormatter:

    def test_structured_fields(self, captured):
        logger = get_logger("simplets.ledger")
        log_action(logger, "info", "Something happened", account_id=5,
                   action="test", resource="account:5", extra={"amount": 10})

        [entry] = lines(captured)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "simplets.ledger"
        assert entry["message"] == "Something happened"
        assert entry["account_id"] == 5
        assert entry["action"] == "test"
        assert entry["extra"] == {"amount": 10}

    def test_missing_fields_are_omitted(self, captured):
        log_action(get_logger("simplets.ledger"), "info", "Bare")
        [entry] = lines(captured)
        assert "account_id" not in entry
        assert "extra" not in entry

    def test_disabled_level_is_skipped(self, captured):
        log_action(get_logger("simplets.ledger"), "debug", "Hidden")
        assert captured.getvalue() == ""


class TestLedgerLogging:

    def test_committed_operations_are_logged(self, captured):
        domain = Domain(InMemoryStorage())
        alice = domain.create_account("alice", "pw")
        bob = domain.create_account("bob", "pw")
        data = domain.get_account(alice).to_dict()
        data["transfers_received_count"] = 1
        domain.storage.save("accounts", str(alice), data)

        domain.transfer(alice, bob, 50, "tea")

        actions = [entry.get("action") for entry in lines(captured)]
        assert actions == ["create_account", "create_account", "transfer"]
        transfer_entry = lines(captured)[-1]
        assert transfer_entry["extra"] == {"payer_id": alice, "payee_id": bob, "amount": 50}

    def test_rejections_are_not_logged(self, captured):
        domain = Domain(InMemoryStorage())
        alice = domain.create_account("alice", "pw")
        bob = domain.create_account("bob", "pw")
        captured.truncate(0)
        captured.seek(0)

        with pytest.raises(Exception):
            domain.transfer(alice, bob, 50)

        assert captured.getvalue() == ""


class TestSetupLogging:

    def test_setup_replaces_handlers(self):
        logger = setup_logging("DEBUG", logger_name="simplets.test_setup")
        setup_logging("DEBUG", logger_name="simplets.test_setup", fmt="text")

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.propagate is False
