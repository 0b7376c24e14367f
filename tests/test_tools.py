"""Tests for tool dispatch and the tool handlers.

The context fixture points dotnet_path at a fake script (see conftest) that
echoes its arguments as JSON, so most tests assert on the exact command line
a handler builds.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from dotnet_mcp.diagnostics import mcp_codes
from dotnet_mcp.execution.concurrency import normalize_target
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools import dispatch_tool
from dotnet_mcp.mcp.tools.handlers.project import PROJECT_ACTIONS


async def call(context: ToolContext, tool: str, **arguments: Any) -> dict[str, Any]:
    """Call a tool in machine-readable mode and parse the envelope."""
    arguments["machine_readable"] = True
    return json.loads(await dispatch_tool(tool, arguments, context))


def echoed_args(envelope: dict[str, Any]) -> list[str]:
    assert envelope["success"] is True, envelope
    return json.loads(envelope["output"])


class TestDispatch:
    """Tool lookup and action validation."""

    @pytest.mark.asyncio
    async def test_unknown_tool_raises(self, context: ToolContext) -> None:
        with pytest.raises(ValueError, match="Unknown tool"):
            await dispatch_tool("dotnet_nope", {}, context)

    @pytest.mark.asyncio
    async def test_unknown_action_lists_valid_actions(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="deploy")
        assert envelope["success"] is False
        assert envelope["exitCode"] == -1
        error = envelope["errors"][0]
        assert error["code"] == "INVALID_PARAMS"
        assert error["mcpErrorCode"] == mcp_codes.INVALID_PARAMS
        assert error["data"]["additionalData"]["validActions"] == ", ".join(PROJECT_ACTIONS)

    @pytest.mark.asyncio
    async def test_missing_action(self, context: ToolContext) -> None:
        text = await dispatch_tool("dotnet_sdk", {}, context)
        assert text.startswith("Error: The 'action' parameter is required")

    @pytest.mark.asyncio
    async def test_none_arguments(self, context: ToolContext) -> None:
        text = await dispatch_tool("dotnet_session", None, context)
        assert "Valid actions: list, get, logs, stop, cleanup" in text

    @pytest.mark.asyncio
    async def test_validation_error_rendered_not_raised(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="build", framework="java17")
        error = envelope["errors"][0]
        assert error["code"] == "INVALID_PARAMS"
        assert error["data"]["additionalData"]["parameter"] == "framework"

    @pytest.mark.asyncio
    async def test_plain_text_by_default(self, context: ToolContext) -> None:
        text = await dispatch_tool("dotnet_sdk", {"action": "version"}, context)
        assert '["--version"]' in text
        assert text.endswith("Exit Code: 0")


class TestProjectTool:
    """dotnet_project."""

    @pytest.mark.asyncio
    async def test_build_arguments(self, context: ToolContext, project_dir: Path) -> None:
        envelope = await call(
            context,
            "dotnet_project",
            action="build",
            project="App.csproj",
            configuration="Release",
            framework="net8.0",
            no_restore=True,
            working_directory=str(project_dir),
        )
        assert echoed_args(envelope) == [
            "build",
            "App.csproj",
            "--configuration",
            "Release",
            "--framework",
            "net8.0",
            "--no-restore",
        ]

    @pytest.mark.asyncio
    async def test_build_failure_is_classified(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="build", project="Broken.csproj")
        assert envelope["success"] is False
        assert envelope["exitCode"] == 1
        assert [e["code"] for e in envelope["errors"]] == ["CS0103", "CS1002"]
        assert all(e["data"]["exitCode"] == 1 for e in envelope["errors"])

    @pytest.mark.asyncio
    async def test_restore_package_error(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="restore", project="Missing.csproj")
        error = envelope["errors"][0]
        assert error["code"] == "NU1101"
        assert error["category"] == "Package"
        assert error["mcpErrorCode"] == mcp_codes.RESOURCE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unrecognized_failure_plain_text(self, context: ToolContext) -> None:
        text = await dispatch_tool("dotnet_project", {"action": "clean"}, context)
        assert "Error: EXIT_3: something went wrong" in text
        assert text.endswith("Exit Code: 3")

    @pytest.mark.asyncio
    async def test_missing_working_directory(self, context: ToolContext, temp_dir: Path) -> None:
        envelope = await call(
            context, "dotnet_project", action="build", working_directory=str(temp_dir / "gone")
        )
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "working_directory"

    @pytest.mark.asyncio
    async def test_new_requires_template(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="new")
        assert envelope["errors"][0]["data"]["additionalData"]["reason"] == "required"

    @pytest.mark.asyncio
    async def test_additional_options_are_checked(self, context: ToolContext) -> None:
        envelope = await call(
            context, "dotnet_project", action="build", additional_options="--nologo; rm -rf /"
        )
        assert envelope["errors"][0]["code"] == "INVALID_PARAMS"


class TestConcurrency:
    """Mutating operations are guarded per target."""

    @pytest.mark.asyncio
    async def test_conflict_on_same_project(self, context: ToolContext, project_dir: Path) -> None:
        context.guard.try_acquire("build", str(project_dir / "App.csproj"))
        envelope = await call(
            context,
            "dotnet_project",
            action="build",
            project="App.csproj",
            working_directory=str(project_dir),
        )
        assert envelope["exitCode"] == -1
        error = envelope["errors"][0]
        assert error["code"] == "CONCURRENCY_CONFLICT"
        assert error["category"] == "Concurrency"
        assert error["data"]["additionalData"]["operationType"] == "build"
        assert error["data"]["additionalData"]["target"] == normalize_target(
            str(project_dir / "App.csproj")
        )

    @pytest.mark.asyncio
    async def test_conflict_defaults_to_working_directory(
        self, context: ToolContext, project_dir: Path
    ) -> None:
        context.guard.try_acquire("test", str(project_dir))
        envelope = await call(
            context, "dotnet_project", action="test", working_directory=str(project_dir)
        )
        assert envelope["errors"][0]["code"] == "CONCURRENCY_CONFLICT"

    @pytest.mark.asyncio
    async def test_other_operation_is_not_blocked(
        self, context: ToolContext, project_dir: Path
    ) -> None:
        context.guard.try_acquire("test", str(project_dir / "App.csproj"))
        envelope = await call(
            context,
            "dotnet_project",
            action="build",
            project="App.csproj",
            working_directory=str(project_dir),
        )
        assert envelope["success"] is True

    @pytest.mark.asyncio
    async def test_lock_released_after_command(self, context: ToolContext, project_dir: Path) -> None:
        await call(context, "dotnet_project", action="build", working_directory=str(project_dir))
        assert context.guard.active_operations() == []

    @pytest.mark.asyncio
    async def test_plain_text_conflict(self, context: ToolContext) -> None:
        context.guard.try_acquire("certificate_trust", "<dev-certs>")
        text = await dispatch_tool("dotnet_dev_certs", {"action": "trust"}, context)
        assert text.startswith("Error: Cannot execute 'certificate_trust' on '<dev-certs>'")
        assert "\nHint: " in text

    @pytest.mark.asyncio
    async def test_workloads_share_a_global_lock(self, context: ToolContext, project_dir: Path) -> None:
        context.guard.try_acquire("workload_install", "<workloads>")
        envelope = await call(
            context,
            "dotnet_workload",
            action="install",
            workload_ids="maui",
            working_directory=str(project_dir),
        )
        assert envelope["errors"][0]["data"]["additionalData"]["target"] == "<workloads>"


class TestBackgroundRun:
    """Background runs and the session tool."""

    @pytest.mark.asyncio
    async def test_background_run_lifecycle(self, context: ToolContext, project_dir: Path) -> None:
        envelope = await call(
            context,
            "dotnet_project",
            action="run",
            project="App.csproj",
            start_mode="background",
            working_directory=str(project_dir),
        )
        assert envelope["success"] is True
        metadata = envelope["metadata"]
        session_id = metadata["sessionId"]
        assert metadata["startMode"] == "background"
        assert metadata["operationType"] == "run"
        assert int(metadata["pid"]) > 0
        assert metadata["target"] == normalize_target(str(project_dir / "App.csproj"))

        # The run lock only covers process start
        assert context.guard.active_operations() == []

        listing = json.loads((await call(context, "dotnet_session", action="list"))["output"])
        assert listing["count"] == 1
        assert listing["sessions"][0]["sessionId"] == session_id
        assert listing["sessions"][0]["isRunning"] is True

        async def has_output() -> bool:
            logs = context.sessions.get_session_logs(session_id)
            return bool(logs and logs.output_lines)

        for _ in range(200):
            if await has_output():
                break
            await asyncio.sleep(0.05)

        logs = json.loads(
            (await call(context, "dotnet_session", action="logs", session_id=session_id))["output"]
        )
        assert logs["outputLines"][0]["content"] == "Now listening on: http://localhost:5000"

        stopped = await call(context, "dotnet_session", action="stop", session_id=session_id)
        assert stopped["success"] is True
        assert stopped["metadata"] == {"sessionId": session_id}

        missing = await call(context, "dotnet_session", action="get", session_id=session_id)
        assert missing["errors"][0]["code"] == "INVALID_PARAMS"
        assert "not found" in missing["errors"][0]["message"]

    @pytest.mark.asyncio
    async def test_project_stop_action(self, context: ToolContext) -> None:
        started = await call(context, "dotnet_project", action="run", start_mode="background")
        session_id = started["metadata"]["sessionId"]
        stopped = await call(context, "dotnet_project", action="stop", session_id=session_id)
        assert stopped["success"] is True
        again = await call(context, "dotnet_project", action="stop", session_id=session_id)
        assert again["success"] is False
        assert again["errors"][0]["data"]["additionalData"]["reason"] == "not running"

    @pytest.mark.asyncio
    async def test_invalid_start_mode(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_project", action="run", start_mode="sideways")
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "start_mode"

    @pytest.mark.asyncio
    async def test_logs_since_must_be_iso(self, context: ToolContext) -> None:
        envelope = await call(
            context, "dotnet_session", action="logs", session_id="x", since="yesterday"
        )
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "since"

    @pytest.mark.asyncio
    async def test_cleanup(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_session", action="cleanup")
        assert json.loads(envelope["output"]) == {"removed": 0}


class TestOtherTools:
    """Argument building for the remaining tools."""

    @pytest.mark.asyncio
    async def test_package_add(self, context: ToolContext) -> None:
        envelope = await call(
            context,
            "dotnet_package",
            action="add",
            project="App.csproj",
            package_id="Newtonsoft.Json",
            version="13.0.3",
        )
        assert echoed_args(envelope) == [
            "add",
            "App.csproj",
            "package",
            "Newtonsoft.Json",
            "--version",
            "13.0.3",
        ]

    @pytest.mark.asyncio
    async def test_package_search(self, context: ToolContext) -> None:
        envelope = await call(
            context, "dotnet_package", action="search", search_term="serilog", take=5
        )
        assert echoed_args(envelope) == ["package", "search", "serilog", "--take", "5"]

    @pytest.mark.asyncio
    async def test_package_id_validated(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_package", action="remove", package_id="bad id")
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "package_id"

    @pytest.mark.asyncio
    async def test_ef_connection_string_is_redacted(self, context: ToolContext) -> None:
        envelope = await call(
            context,
            "dotnet_ef",
            action="database_update",
            connection="Server=db;Password=secret123",
        )
        assert envelope["success"] is True
        assert "secret123" not in envelope["output"]

    @pytest.mark.asyncio
    async def test_ef_migrations_add(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_ef", action="migrations_add", name="AddUsers")
        assert echoed_args(envelope) == ["ef", "migrations", "add", "AddUsers"]

    @pytest.mark.asyncio
    async def test_secrets_set_requires_value(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_secrets", action="set", key="ApiKey")
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "value"

    @pytest.mark.asyncio
    async def test_secrets_list(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_secrets", action="list", project="App.csproj")
        assert echoed_args(envelope) == ["user-secrets", "list", "--project", "App.csproj"]

    @pytest.mark.asyncio
    async def test_dev_certs_export_format(self, context: ToolContext) -> None:
        envelope = await call(
            context, "dotnet_dev_certs", action="export", path="cert.pem", format="pem"
        )
        assert echoed_args(envelope) == [
            "dev-certs",
            "https",
            "--export-path",
            "cert.pem",
            "--format",
            "Pem",
        ]

    @pytest.mark.asyncio
    async def test_workload_install_requires_ids(self, context: ToolContext) -> None:
        envelope = await call(context, "dotnet_workload", action="install")
        assert envelope["errors"][0]["data"]["additionalData"]["parameter"] == "workload_ids"

    @pytest.mark.asyncio
    async def test_workload_install(self, context: ToolContext) -> None:
        envelope = await call(
            context, "dotnet_workload", action="install", workload_ids="maui, wasm-tools"
        )
        assert echoed_args(envelope) == ["workload", "install", "maui", "wasm-tools"]

    @pytest.mark.asyncio
    async def test_sdk_capabilities(self, context: ToolContext) -> None:
        context.guard.try_acquire("build", "/src/App.csproj")
        envelope = await call(context, "dotnet_sdk", action="capabilities")
        data = json.loads(envelope["output"])
        names = [tool["name"] for tool in data["tools"]]
        assert names[0] == "dotnet_project"
        assert "dotnet_session" in names
        assert len(names) == 8
        assert data["activeOperations"][0]["operationType"] == "build"
        assert data["activeSessions"] == 0
