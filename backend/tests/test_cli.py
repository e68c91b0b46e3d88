from icebox.cli import ledger_check, ledger_balance, reset_db, workers_recompute
from icebox.models import CashEntry, Worker
from icebox.services import cash_service


def test_ledger_balance(app, db_session, actor):
    cash_service.add_cash_entry("local_sale", 12345, actor)
    result = app.test_cli_runner().invoke(ledger_balance)
    assert result.exit_code == 0
    assert "123.45" in result.output


def test_ledger_check_passes_on_clean_ledger(app, db_session, actor):
    cash_service.add_cash_entry("local_sale", 100, actor)
    result = app.test_cli_runner().invoke(ledger_check)
    assert result.exit_code == 0
    assert "PASS" in result.output


def test_ledger_check_fails_on_tampered_ledger(app, db_session, actor):
    cash_service.add_cash_entry("local_sale", 100, actor)
    db_session.query(CashEntry).update({CashEntry.amount_cents: 50})
    db_session.commit()

    result = app.test_cli_runner().invoke(ledger_check)
    assert result.exit_code == 1


def test_workers_recompute_reports_and_applies(app, db_session, worker):
    w = db_session.get(Worker, worker.id)
    w.total_sales = 5
    db_session.commit()

    runner = app.test_cli_runner()
    dry = runner.invoke(workers_recompute, ["--worker-id", str(worker.id)])
    assert dry.exit_code == 0
    assert "drifted" in dry.output

    applied = runner.invoke(workers_recompute, ["--apply"])
    assert applied.exit_code == 0
    assert db_session.get(Worker, worker.id).total_sales == 0


def test_reset_db_requires_confirmation(app, db_session):
    result = app.test_cli_runner().invoke(reset_db, input="n\n")
    assert result.exit_code != 0
