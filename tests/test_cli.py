"""Tests for tool_modules/aa_bbb_stress/src/cli.py - command line entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tool_modules.aa_bbb_stress.src import cli
from tool_modules.aa_bbb_stress.src.config import get_config
from tool_modules.aa_bbb_stress.src.coordinator import ClientCounts
from tool_modules.aa_bbb_stress.src.errors import CredentialFetchFailure, GatewayError


class TestParseArgs:
    def test_defaults(self):
        args = cli.parse_args(["-m", "stress-room"])

        assert args.meeting == "stress-room"
        assert args.duration == 60
        assert args.webcams == 0
        assert args.microphones == 0
        assert args.listening == 1
        assert args.concurrency == 1
        assert args.report is None
        assert args.headful is False

    def test_all_kinds(self):
        args = cli.parse_args(
            ["-m", "room", "-d", "300", "--webcams", "1", "--microphones", "2", "--listening", "10"]
        )

        assert args.duration == 300
        assert (args.webcams, args.microphones, args.listening) == (1, 2, 10)

    def test_meeting_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])

    def test_negative_count_rejected(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["-m", "room", "--webcams", "-1"])

    def test_zero_concurrency_rejected(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["-m", "room", "--concurrency", "0"])

    def test_empty_roster_rejected(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["-m", "room", "--listening", "0"])


class TestRunStressTest:
    @pytest.mark.asyncio
    async def test_wires_coordinator(self, tmp_path):
        report = tmp_path / "report.json"
        args = cli.parse_args(
            [
                "-m", "room", "-d", "5", "--webcams", "1", "--microphones", "2",
                "--concurrency", "2", "--headful", "--report", str(report),
            ]
        )
        run = MagicMock()
        coordinator = MagicMock()
        coordinator.start = AsyncMock(return_value=run)

        with patch.object(cli.BigBlueButtonClient, "from_config") as from_config, patch.object(
            cli, "StressTestCoordinator", return_value=coordinator
        ) as coordinator_cls:
            result = await cli.run_stress_test(args)

        assert result == 0
        from_config.assert_called_once()
        assert coordinator_cls.call_args.args == (from_config.return_value,)
        coordinator.start.assert_awaited_once_with(
            "room", 5, ClientCounts(camera=1, microphone=2, listen_only=1)
        )
        run.save_report.assert_called_once_with(report)
        assert get_config().concurrency == 2
        assert get_config().browser.headless is False

    @pytest.mark.asyncio
    async def test_missing_gateway_settings(self):
        args = cli.parse_args(["-m", "room"])

        with pytest.raises(GatewayError):
            await cli.run_stress_test(args)


class TestMain:
    def test_success(self):
        with patch.object(cli, "run_stress_test", new=AsyncMock(return_value=0)):
            assert cli.main(["-m", "room"]) == 0

    def test_fatal_error_exit_code(self):
        failing = AsyncMock(side_effect=CredentialFetchFailure("meeting not found"))

        with patch.object(cli, "run_stress_test", new=failing):
            assert cli.main(["-m", "room"]) == 1

    def test_interrupted(self):
        with patch.object(cli, "run_stress_test", new=AsyncMock(side_effect=KeyboardInterrupt)):
            assert cli.main(["-m", "room"]) == 130
