"""End-to-end lifecycle scenarios run through the simulation entry points."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from blue_carbon_registry.simulation import main, run_all, run_scenario


class TestScenarios:
    @pytest.mark.asyncio
    async def test_all_scenarios(self) -> None:
        results = await run_all()

        happy = results[1]
        assert happy["project_status"] == "CREDITS_ISSUED"
        assert happy["credit_status"] == "ACTIVE"
        assert happy["carbon_amount"] == 500
        assert happy["ledger"] == ["MINT"]

        rejected = results[2]
        assert rejected["project_status"] == "REJECTED"
        assert rejected["update_error"] == "INVALID_STATE"

        retired = results[3]
        assert retired["credit_status"] == "RETIRED"
        assert retired["transfer_error"] == "INVALID_STATE"
        assert retired["ledger"] == ["MINT", "RETIRE"]

    @pytest.mark.asyncio
    async def test_single_scenario(self) -> None:
        result = await run_scenario(2)
        assert result == {"project_status": "REJECTED", "update_error": "INVALID_STATE"}

    @pytest.mark.asyncio
    async def test_unknown_scenario(self) -> None:
        assert await run_scenario(9) is None


class TestCommandLine:
    def test_main_runs_one_scenario(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("blue_carbon_registry.simulation.setup_logging") as setup:
            main(["--scenario", "3"])
        setup.assert_called_once()
        out = capsys.readouterr().out
        assert "SCENARIO 3" in out
        assert "INVALID_STATE" in out
