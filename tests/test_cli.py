"""
Tests for the CLI interface.
"""
from datetime import datetime
from unittest.mock import patch, MagicMock

import pytest
from typer.testing import CliRunner

from pool_club_billing.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from pool_club_billing.client.session_api import SessionApiError, StaffIdentity
from pool_club_billing.core.billing import BillBreakdown
from pool_club_billing.core.desk import EndGamePreview
from pool_club_billing.core.tables import PoolTable

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    """Keep a developer's POOL_CLUB_CONFIG out of the tests."""
    monkeypatch.delenv("POOL_CLUB_CONFIG", raising=False)


@pytest.fixture
def mock_desk():
    """Mock the front desk the CLI builds."""
    with patch('pool_club_billing.cli.main._get_desk') as mock_get:
        desk = MagicMock()
        mock_get.return_value = desk
        yield desk


def _preview(minutes: int = 64) -> EndGamePreview:
    return EndGamePreview(
        table=PoolTable(
            id=2,
            occupied=True,
            occupant="Nimal",
            start_time=datetime(2024, 3, 15, 18, 0),
            end_time=datetime(2024, 3, 15, 19, 4)
        ),
        breakdown=BillBreakdown(
            initial_charge=950.0,
            additional_charge=63.33,
            total_bill=1013.33,
            total_minutes=minutes,
            additional_minutes=4
        )
    )


class TestQuote:
    """Test the offline quote command."""

    def test_quote_with_overage(self):
        """Test a quote past the grace window shows the additional charge."""
        result = runner.invoke(app, [
            "quote", "--start", "2024-03-15T18:00:00", "--end", "2024-03-15T19:04:00"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Game Receipt" in result.output
        assert "Total Time: 64 minutes" in result.output
        assert "Additional Time: 4 minutes" in result.output
        assert "Additional Charge: Rs: 63.33" in result.output
        assert "Total Bill: Rs: 1,013.33" in result.output

    def test_quote_inside_grace_window(self):
        """Test a short session hides the additional lines."""
        result = runner.invoke(app, [
            "quote", "--start", "2024-03-15T18:00:00", "--end", "2024-03-15T19:03:00"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Additional" not in result.output
        assert "Total Bill: Rs: 950.00" in result.output

    def test_quote_rate_override(self):
        """Test --rate replaces the configured hourly rate."""
        result = runner.invoke(app, [
            "quote", "-s", "2024-03-15T18:00:00", "-e", "2024-03-15T19:30:00", "--rate", "600"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Total Bill: Rs: 900.00" in result.output

    def test_quote_invalid_timestamp(self):
        """Test a malformed timestamp fails cleanly."""
        result = runner.invoke(app, ["quote", "-s", "later", "-e", "2024-03-15T19:30:00"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output

    def test_quote_uses_config_file(self, tmp_path):
        """Test --config supplies rate and currency."""
        config_path = tmp_path / "club.yaml"
        config_path.write_text("rates:\n  hourly_rate: 600\ncurrency: LKR\n", encoding="utf-8")

        result = runner.invoke(app, [
            "--config", str(config_path),
            "quote", "-s", "2024-03-15T18:00:00", "-e", "2024-03-15T18:30:00"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Total Bill: LKR: 600.00" in result.output


class TestTables:
    """Test the table board command."""

    def test_tables_shows_status(self, mock_desk):
        """Test free and occupied tables are listed."""
        mock_desk.refresh.return_value = [
            PoolTable.available(1),
            PoolTable(id=2, occupied=True, occupant="Nimal",
                      start_time=datetime(2024, 3, 15, 18, 5))
        ]

        result = runner.invoke(app, ["tables"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Available" in result.output
        assert "Game Started" in result.output
        assert "Nimal" in result.output
        assert "18:05:00" in result.output

    def test_tables_api_failure(self, mock_desk):
        """Test an unreachable session store exits with failure."""
        mock_desk.refresh.side_effect = SessionApiError("Error fetching data: refused")

        result = runner.invoke(app, ["tables"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error fetching data" in result.output


class TestStart:
    """Test the start command."""

    def test_start_game(self, mock_desk):
        """Test a game is started with the staff identity."""
        result = runner.invoke(app, ["start", "1", "Kasun", "--staff", "Saman", "--staff-id", "user_1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Game Started for Table No: 1" in result.output
        mock_desk.start_game.assert_called_once_with(1, "Kasun", StaffIdentity("Saman", "user_1"))

    def test_start_blank_player(self, mock_desk):
        """Test validation errors are shown."""
        mock_desk.start_game.side_effect = ValueError("Please enter player's name to continue")

        result = runner.invoke(app, ["start", "1", " "])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Please enter player's name to continue" in result.output

    def test_start_api_failure(self, mock_desk):
        """Test a rejected start asks staff to retry."""
        mock_desk.start_game.side_effect = SessionApiError("Error starting game: Bad Request", 400)

        result = runner.invoke(app, ["start", "1", "Kasun"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Failed to start the game" in result.output


class TestEnd:
    """Test the end command."""

    def test_end_confirmed(self, mock_desk):
        """Test the receipt is shown and the game closed with --yes."""
        preview = _preview()
        mock_desk.preview_end.return_value = preview

        result = runner.invoke(app, ["end", "2", "--staff", "Saman", "--staff-id", "user_1", "--yes"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Player: Nimal" in result.output
        assert "Total Bill: Rs: 1,013.33" in result.output
        assert "Game successfully ended." in result.output
        mock_desk.finalize_end.assert_called_once_with(preview, StaffIdentity("Saman", "user_1"))

    def test_end_interactive_confirm(self, mock_desk):
        """Test answering yes at the prompt closes the game."""
        mock_desk.preview_end.return_value = _preview()

        result = runner.invoke(app, ["end", "2"], input="y\n")

        assert result.exit_code == EXIT_CODE_PASS
        mock_desk.finalize_end.assert_called_once()

    def test_end_cancelled(self, mock_desk):
        """Test declining the prompt leaves the game running."""
        mock_desk.preview_end.return_value = _preview()

        result = runner.invoke(app, ["end", "2"], input="n\n")

        assert result.exit_code == EXIT_CODE_PASS
        assert "Cancelled" in result.output
        mock_desk.finalize_end.assert_not_called()

    def test_end_free_table(self, mock_desk):
        """Test ending a free table fails before any prompt."""
        mock_desk.preview_end.side_effect = ValueError("Table 1 has no game in progress")

        result = runner.invoke(app, ["end", "1", "--yes"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "no game in progress" in result.output

    def test_end_api_failure(self, mock_desk):
        """Test a rejected end asks staff to retry."""
        mock_desk.preview_end.return_value = _preview()
        mock_desk.finalize_end.side_effect = SessionApiError("Error ending game: Bad Request", 400)

        result = runner.invoke(app, ["end", "2", "--yes"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Failed to end the game" in result.output


class TestReports:
    """Test history and earnings commands."""

    def test_history(self, mock_desk):
        """Test past sessions are listed with totals."""
        mock_desk.client.list_all_sessions.return_value = [{
            "tableId": 1,
            "playerName": "Kasun",
            "startTime": "2024-03-15T18:00:00",
            "endTime": "2024-03-15T20:00:00",
            "totalAmount": 1900
        }]

        result = runner.invoke(app, ["history"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Kasun" in result.output
        assert "1,900.00" in result.output

    def test_history_empty(self, mock_desk):
        """Test an empty history prints a hint."""
        mock_desk.client.list_all_sessions.return_value = []

        result = runner.invoke(app, ["history"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No sessions recorded yet." in result.output

    def test_earnings(self, mock_desk):
        """Test the earnings summary is rendered."""
        mock_desk.client.get_earnings_summary.return_value = {
            "todayEarnings": 4813.33,
            "totalSessions": 1200
        }

        result = runner.invoke(app, ["earnings"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "todayEarnings" in result.output
        assert "4,813.33" in result.output
        assert "1,200" in result.output

    def test_earnings_failure(self, mock_desk):
        """Test a failing earnings call exits with failure."""
        mock_desk.client.get_earnings_summary.side_effect = SessionApiError("Error fetching data: refused")

        result = runner.invoke(app, ["earnings"])

        assert result.exit_code == EXIT_CODE_FAIL
