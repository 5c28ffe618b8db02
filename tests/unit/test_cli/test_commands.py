"""Tests for the taskflow-service CLI commands.

Testing approach:
- Uses Click's CliRunner for command invocation
- Injects a runtime over the in-memory store and the scripted push provider
- Tests output formatting (table and JSON) and exit codes
"""

from contextlib import asynccontextmanager
from datetime import timedelta
import json

from click.testing import CliRunner
import pytest

from taskflow_service.cli.main import cli
from taskflow_service.core.settings import Settings
from taskflow_service.jobs.runtime import build_runtime

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner, store, push_provider, clock):
    """Invoke the CLI against the test store and push provider."""

    @asynccontextmanager
    async def runtime_factory():
        yield build_runtime(Settings(), store, push_provider, clock=clock)

    def _invoke(*args: str):
        return cli_runner.invoke(cli, list(args), obj={"runtime_factory": runtime_factory})

    return _invoke


# =============================================================================
# jobs
# =============================================================================


@pytest.mark.unit
class TestJobsCommands:
    def test_run_job_table(self, invoke, add_task, now):
        add_task("late", due_time=now - timedelta(hours=1))

        result = invoke("jobs", "run", "mark_overdue")

        assert result.exit_code == 0
        assert "mark_overdue" in result.output
        assert "mark_overdue finished: 1 item(s)" in result.output

    def test_run_job_json(self, invoke, add_device, add_notification):
        add_device("u1", "a")
        add_notification("u1", "n1")

        result = invoke("jobs", "run", "process_due", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["job"] == "process_due"
        assert data[0]["count"] == 1

    def test_unknown_job_rejected(self, invoke):
        result = invoke("jobs", "run", "reindex")

        assert result.exit_code == 2

    def test_run_all(self, invoke):
        result = invoke("jobs", "run-all", "--format", "json")

        assert result.exit_code == 0
        assert [r["job"] for r in json.loads(result.output)] == [
            "process_due",
            "mark_overdue",
            "cleanup_sent",
            "recompute_user_stats",
        ]


# =============================================================================
# devices
# =============================================================================


@pytest.mark.unit
class TestDevicesCommands:
    def test_register_and_list(self, invoke):
        result = invoke("devices", "register", "u1", "tok-1", "--platform", "android")
        assert result.exit_code == 0
        assert "Registered android device" in result.output

        listed = invoke("devices", "list", "u1", "--format", "json")

        assert listed.exit_code == 0
        rows = json.loads(listed.output)
        assert [(r["token"], r["platform"]) for r in rows] == [("tok-1", "android")]

    def test_list_table(self, invoke, add_device):
        add_device("u1", "tok-1")

        result = invoke("devices", "list", "u1")

        assert result.exit_code == 0
        assert "token" in result.output
        assert "tok-1" in result.output

    def test_list_empty(self, invoke):
        result = invoke("devices", "list", "u1")

        assert result.exit_code == 0
        assert "No devices registered" in result.output

    def test_unregister_unknown_token(self, invoke):
        result = invoke("devices", "unregister", "u1", "missing")

        assert result.exit_code == 1
        assert "Device token not found" in result.output

    def test_register_deactivated_token(self, invoke, add_device):
        add_device("u1", "dead", active=False)

        result = invoke("devices", "register", "u1", "dead")

        assert result.exit_code == 1


# =============================================================================
# notifications
# =============================================================================


@pytest.mark.unit
class TestNotificationsCommands:
    def test_schedule_defaults(self, invoke, add_task, store, now):
        add_task("t1", due_time=now + timedelta(days=2))

        result = invoke("notifications", "schedule", "t1")

        assert result.exit_code == 0
        assert "Scheduled 3 reminder(s) for task t1" in result.output
        assert "users/u1/notifications/notif_t1_1440min" in store.snapshot()

    def test_schedule_custom_offsets(self, invoke, add_task, store, now):
        add_task("t1", due_time=now + timedelta(days=2))

        result = invoke("notifications", "schedule", "t1", "--offset", "30", "--offset", "5")

        assert result.exit_code == 0
        assert sorted(p for p in store.snapshot() if "/notifications/" in p) == [
            "users/u1/notifications/notif_t1_30min",
            "users/u1/notifications/notif_t1_5min",
        ]

    def test_schedule_missing_task(self, invoke):
        result = invoke("notifications", "schedule", "nope")

        assert result.exit_code == 1
        assert "Task nope not found" in result.output

    def test_schedule_invalid_offset(self, invoke, add_task, now):
        add_task("t1", due_time=now + timedelta(days=2))

        result = invoke("notifications", "schedule", "t1", "--offset", "0")

        assert result.exit_code == 1

    def test_schedule_task_with_unknown_status(self, invoke, add_task, now):
        add_task("t1", status="archived", due_time=now + timedelta(days=2))

        result = invoke("notifications", "schedule", "t1")

        assert result.exit_code == 0
        assert "Scheduled 3 reminder(s) for task t1" in result.output

    def test_schedule_without_due_time(self, invoke, add_task):
        add_task("t1")

        result = invoke("notifications", "schedule", "t1")

        assert result.exit_code == 0
        assert "No reminders scheduled" in result.output

    def test_cancel(self, invoke, add_notification, now):
        add_notification("u1", "notif_t1_15min", scheduled_for=now + timedelta(hours=1))

        result = invoke("notifications", "cancel", "u1", "t1")

        assert result.exit_code == 0
        assert "Cancelled 1 pending reminder(s)" in result.output

    def test_stats_json(self, invoke, add_notification, now):
        add_notification("u1", "n1", sent=True, sent_at=now)

        result = invoke("notifications", "stats", "u1", "--format", "json")

        assert result.exit_code == 0
        assert json.loads(result.output)["sent"] == 1

    def test_send(self, invoke, add_device, push_provider):
        add_device("u1", "a")

        result = invoke(
            "notifications", "send", "u1", "--title", "Hi", "--body", "There", "--data", "k=v"
        )

        assert result.exit_code == 0
        assert "Delivered to 1 device(s)" in result.output
        assert push_provider.calls[0][1].data == {"k": "v"}

    def test_send_bad_data(self, invoke):
        result = invoke("notifications", "send", "u1", "--title", "t", "--body", "b", "--data", "kv")

        assert result.exit_code == 2

    def test_send_without_devices(self, invoke):
        result = invoke("notifications", "send", "u1", "--title", "t", "--body", "b")

        assert result.exit_code == 1


# =============================================================================
# scheduler and db
# =============================================================================


@pytest.mark.unit
def test_scheduler_list(invoke):
    result = invoke("scheduler", "list", "--format", "json")

    assert result.exit_code == 0
    assert {job["id"] for job in json.loads(result.output)} == {
        "process_due",
        "mark_overdue",
        "cleanup_sent",
        "recompute_user_stats",
    }


@pytest.mark.unit
def test_db_init_in_memory(invoke):
    result = invoke("db", "init")

    assert result.exit_code == 0
    assert "nothing to create" in result.output


@pytest.mark.unit
def test_version(cli_runner):
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output
