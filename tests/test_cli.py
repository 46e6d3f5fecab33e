"""Tests for the run_visibility_check command-line entry point."""

import json
from unittest.mock import patch

import pytest

import run_visibility_check


class TestParseArgs:
    def test_defaults(self):
        args = run_visibility_check.parse_args(["CRM software", "Salesforce", "HubSpot"])
        assert args.category == "CRM software"
        assert args.brands == ["Salesforce", "HubSpot"]
        assert args.provider == "openai"
        assert args.competitor_mode is False
        assert args.no_record is False

    def test_unknown_provider_rejected(self):
        with pytest.raises(SystemExit):
            run_visibility_check.parse_args(["CRM software", "Salesforce", "--provider", "mistral"])


class TestMain:
    @pytest.mark.asyncio
    async def test_prints_result_json(self, registry, capsys):
        with patch("run_visibility_check.build_registry", return_value=registry):
            code = await run_visibility_check.main(["CRM software", "Salesforce", "HubSpot", "--no-record"])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["total_mentions"] == 2
        assert data["run_id"] is None
        assert [m["brand"] for m in data["mentions"]] == ["Salesforce", "HubSpot"]

    @pytest.mark.asyncio
    async def test_records_and_closes_recorder(self, registry, recorder, capsys):
        with (
            patch("run_visibility_check.build_registry", return_value=registry),
            patch("run_visibility_check.build_recorder", return_value=recorder),
            patch.object(recorder, "close") as close,
        ):
            code = await run_visibility_check.main(["CRM software", "Salesforce"])

        assert code == 0
        assert json.loads(capsys.readouterr().out)["run_id"] is not None
        close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_validation_error_exit_code(self, registry):
        with patch("run_visibility_check.build_registry", return_value=registry):
            code = await run_visibility_check.main(
                ["CRM software", "Salesforce", "--competitor-mode", "--no-record"]
            )

        assert code == 1
