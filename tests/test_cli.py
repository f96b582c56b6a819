import yaml
import pytest
from click.testing import CliRunner

from expense_client.cli import main as cli


@pytest.fixture
def cli_env(tmp_path, monkeypatch, server):
    monkeypatch.delenv("EXPENSE_CLIENT_API_URL", raising=False)
    monkeypatch.delenv("EXPENSE_CLIENT_SESSION_FILE", raising=False)
    monkeypatch.setattr("expense_client.gateway.requests.Session", lambda: server)
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({
        "api_url": "http://testserver",
        "session_file": str(tmp_path / "session.json"),
        "output_dir": str(tmp_path / "data"),
        "export_dir": str(tmp_path / "exports"),
    }))
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(cli, ["--config", str(cfg_path), *args], input=input)

    return invoke


def _login(invoke):
    res = invoke("login", "--email", "a@b.com", "--password", "x")
    assert res.exit_code == 0, res.output
    return res


def test_login_and_list(cli_env, server, tmp_path):
    server.seed_expense("u1", "Rent", 900.0, "Housing", "2024-03-01")
    server.seed_expense("u1", "Salary", 3000.0, "Other", "2024-03-25", type="income")
    res = _login(cli_env)
    assert "Login successful! Welcome, Alice." in res.output

    res = cli_env("list", "--month", "2024-03", "--sort", "amount", "--order", "asc")
    assert res.exit_code == 0, res.output
    lines = res.output.strip().splitlines()
    assert "Rent" in lines[0] and "-€900.00" in lines[0]
    assert "Salary" in lines[1] and "+€3,000.00" in lines[1]

    res = cli_env("list", "--month", "2024-03", "--type", "income", "--output", "csv")
    assert res.exit_code == 0, res.output
    assert "Rent" not in res.output
    assert (tmp_path / "data" / "expenses-2024-03.csv").exists()


def test_list_requires_login(cli_env):
    res = cli_env("list", "--month", "2024-03")
    assert res.exit_code == 1
    assert "User not found" in res.output


def test_list_rejects_bad_month(cli_env):
    _login(cli_env)
    res = cli_env("list", "--month", "March")
    assert res.exit_code == 1
    assert "Invalid month" in res.output


def test_add_edit_delete(cli_env, server):
    _login(cli_env)
    res = cli_env(
        "add", "--description", "Coffee", "--amount", "4.5",
        "--category", "Food", "--date", "2024-03-01",
    )
    assert res.exit_code == 0, res.output
    assert "Expense added successfully! (exp1)" in res.output

    res = cli_env("edit", "exp1", "--month", "2024-03", "--amount", "5")
    assert res.exit_code == 0, res.output
    assert server.expenses["exp1"]["amount"] == 5.0
    assert server.expenses["exp1"]["description"] == "Coffee"

    res = cli_env("delete", "exp1", "--month", "2024-03", input="n\n")
    assert res.exit_code == 0, res.output
    assert "Cancelled." in res.output
    assert "exp1" in server.expenses

    res = cli_env("delete", "exp1", "--month", "2024-03", "--yes")
    assert res.exit_code == 0, res.output
    assert "Expense deleted successfully!" in res.output
    assert "exp1" not in server.expenses


def test_add_reports_validation_errors(cli_env, server):
    _login(cli_env)
    res = cli_env(
        "add", "--description", "Coffee", "--amount", "lots",
        "--category", "Food", "--date", "2024-03-01",
    )
    assert res.exit_code == 1
    assert "Amount must be a number" in res.output
    assert server.calls_to("POST", "/expenses") == []


def test_edit_unknown_expense(cli_env):
    _login(cli_env)
    res = cli_env("edit", "nope", "--month", "2024-03", "--amount", "5")
    assert res.exit_code == 1
    assert "Expense nope not found in 2024-03." in res.output


def test_delete_unknown_expense(cli_env):
    _login(cli_env)
    res = cli_env("delete", "nope", "--month", "2024-03", "--yes")
    assert res.exit_code == 1
    assert "Expense not found" in res.output


def test_summary(cli_env, server):
    server.seed_expense("u1", "Rent", 900.0, "Housing", "2024-03-01")
    server.seed_expense("u1", "Food", 100.0, "Food", "2024-03-02")
    _login(cli_env)

    res = cli_env("summary", "--month", "2024-03")
    assert res.exit_code == 0, res.output
    assert "Total Expenses: €1,000.00" in res.output
    assert "Balance:        -€1,000.00" in res.output
    assert "90.0%" in res.output
    assert "10.0%" in res.output


def test_summary_empty_month(cli_env):
    _login(cli_env)
    res = cli_env("summary", "--month", "2024-05")
    assert res.exit_code == 0, res.output
    assert "No expenses recorded for this month." in res.output


def test_export(cli_env, server, tmp_path):
    server.seed_expense("u1", "Rent", 900.0, "Housing", "2024-03-01")
    _login(cli_env)

    res = cli_env("export", "--month", "2024-03")
    assert res.exit_code == 0, res.output
    saved = tmp_path / "exports" / "expenses-2024-03.csv"
    assert saved.exists()
    assert "Export contains 1 transaction(s)." in res.output


def test_currency_and_profile(cli_env, server):
    _login(cli_env)
    res = cli_env("currency")
    assert "* EUR" in res.output

    res = cli_env("currency", "gbp")
    assert res.exit_code == 0, res.output
    assert "Now using GBP (£)" in res.output
    assert server.users["a@b.com"]["currency"] == "GBP"

    res = cli_env("currency", "pounds")
    assert res.exit_code == 1

    res = cli_env("profile", "--name", "Alicia")
    assert res.exit_code == 0, res.output
    assert server.users["a@b.com"]["name"] == "Alicia"


def test_expired_session_is_reported(cli_env, server, tmp_path):
    _login(cli_env)
    server.tokens.clear()

    res = cli_env("list", "--month", "2024-03")
    assert res.exit_code == 1
    assert "Session expired, please log in again." in res.output
    assert not (tmp_path / "session.json").exists()


def test_logout(cli_env, tmp_path):
    _login(cli_env)
    res = cli_env("logout")
    assert res.exit_code == 0
    assert not (tmp_path / "session.json").exists()


def test_register(cli_env, server):
    res = cli_env("register", "--name", "Bob", "--email", "bob@b.com", "--password", "pw")
    assert res.exit_code == 0, res.output
    assert "bob@b.com" in server.users


def test_set_config(cli_env, tmp_path):
    res = cli_env("set-config", "request_timeout", "3")
    assert res.exit_code == 0, res.output
    saved = yaml.safe_load((tmp_path / "config.yaml").read_text())
    assert saved["request_timeout"] == 3.0
    assert saved["api_url"] == "http://testserver"

    res = cli_env("set-config", "request_timeout", "soon")
    assert res.exit_code == 2
