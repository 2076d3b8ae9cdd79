"""Tests for the management CLI."""

from datetime import UTC, datetime, timedelta

import manage
import pytest
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.intent.intent import IntentStatus, PurchaseIntent


@pytest.fixture(autouse=True)
def initialized_domain(monkeypatch):
    monkeypatch.setattr(manage, "_domain", lambda: checkout)


def _persist_intent():
    intent = PurchaseIntent.create(product_id="prod-widget", quantity=1, unit_price=25.0, session_id="sess-cli")
    current_domain.repository_for(PurchaseIntent).add(intent)
    return intent


class TestSweepIntents:
    def test_sweep_reports_count(self, capsys):
        intent = _persist_intent()
        as_of = (datetime.now(UTC) + timedelta(hours=1)).isoformat()

        manage.main(["sweep-intents", "--as-of", as_of])

        assert "Expired 1 purchase intent(s)." in capsys.readouterr().out
        assert current_domain.repository_for(PurchaseIntent).get(intent.id).status == IntentStatus.EXPIRED.value

    def test_sweep_without_reference_time(self, capsys):
        _persist_intent()
        assert manage.sweep_intents() == 0
        assert "Expired 0 purchase intent(s)." in capsys.readouterr().out


class TestSchemaCommands:
    def test_memory_provider_has_no_schema(self, capsys):
        manage.main(["setup-db"])
        assert "nothing to create" in capsys.readouterr().out

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            manage.main(["migrate"])
