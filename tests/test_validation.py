"""Tests for tool parameter validation."""

from pathlib import Path

import pytest

from dotnet_mcp.execution.validation import (
    ParameterValidationError,
    optional_int,
    optional_str,
    parse_additional_options,
    require,
    validate_configuration,
    validate_directory,
    validate_framework,
    validate_migration_name,
    validate_package_id,
    validate_project_path,
    validate_runtime_identifier,
    validate_verbosity,
    validate_workload_ids,
)


class TestArguments:
    """Argument accessors."""

    def test_require_trims(self) -> None:
        assert require({"name": "  App "}, "name") == "App"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_missing(self, value) -> None:
        with pytest.raises(ParameterValidationError) as excinfo:
            require({"name": value}, "name")
        assert excinfo.value.parameter == "name"
        assert excinfo.value.reason == "required"

    def test_require_wrong_type(self) -> None:
        with pytest.raises(ParameterValidationError, match="must be a string"):
            require({"name": 3}, "name")

    def test_optional_str_blank_is_none(self) -> None:
        assert optional_str({"x": " "}, "x") is None
        assert optional_str({}, "x") is None

    def test_optional_int(self) -> None:
        assert optional_int({"n": 5}, "n", minimum=1) == 5
        assert optional_int({}, "n") is None
        with pytest.raises(ParameterValidationError, match="at least 1"):
            optional_int({"n": 0}, "n", minimum=1)
        with pytest.raises(ParameterValidationError, match="integer"):
            optional_int({"n": True}, "n")


class TestValidators:
    """Individual parameter validators."""

    @pytest.mark.parametrize("value", ["net8.0", "net10.0", "netcoreapp3.1", "netstandard2.0", "net8.0-windows10.0.19041", None])
    def test_valid_frameworks(self, value) -> None:
        validate_framework(value)

    @pytest.mark.parametrize("value", ["java17", "8.0", "net"])
    def test_invalid_frameworks(self, value) -> None:
        with pytest.raises(ParameterValidationError) as excinfo:
            validate_framework(value)
        assert excinfo.value.parameter == "framework"

    def test_configuration(self) -> None:
        validate_configuration("Release")
        validate_configuration("debug")
        with pytest.raises(ParameterValidationError):
            validate_configuration("Staging")

    def test_project_extension(self) -> None:
        validate_project_path("src/App.csproj")
        validate_project_path("App.slnx")
        validate_project_path("src/App")
        with pytest.raises(ParameterValidationError, match="extension"):
            validate_project_path("App.txt")

    def test_directory(self, temp_dir: Path) -> None:
        validate_directory(str(temp_dir), "working_directory")
        with pytest.raises(ParameterValidationError) as excinfo:
            validate_directory(str(temp_dir / "missing"), "working_directory")
        assert excinfo.value.reason == "not found"

    def test_verbosity(self) -> None:
        validate_verbosity("minimal")
        validate_verbosity("diag")
        with pytest.raises(ParameterValidationError):
            validate_verbosity("loud")

    @pytest.mark.parametrize("value", ["linux-x64", "win-arm64", "osx-arm64", "linux-musl-x64", "win10-x64"])
    def test_valid_runtime_identifiers(self, value) -> None:
        validate_runtime_identifier(value)

    def test_invalid_runtime_identifier(self) -> None:
        with pytest.raises(ParameterValidationError):
            validate_runtime_identifier("linux")

    def test_workload_ids(self) -> None:
        assert validate_workload_ids("maui, wasm-tools ,,android") == ["maui", "wasm-tools", "android"]
        with pytest.raises(ParameterValidationError, match="At least one"):
            validate_workload_ids(" , ")
        with pytest.raises(ParameterValidationError, match="Invalid workload ID"):
            validate_workload_ids("maui;rm")

    def test_package_id(self) -> None:
        validate_package_id("Newtonsoft.Json")
        with pytest.raises(ParameterValidationError):
            validate_package_id("bad id")

    def test_migration_name(self) -> None:
        validate_migration_name("AddUsers_2")
        with pytest.raises(ParameterValidationError):
            validate_migration_name("2Users")


class TestAdditionalOptions:
    """Free-form extra options."""

    def test_allowed_characters(self) -> None:
        assert parse_additional_options("--nologo -v q") == ["--nologo", "-v", "q"]
        assert parse_additional_options(None) == []

    @pytest.mark.parametrize("value", ["--x; rm -rf /", "$(whoami)", "a | b", "a && b", "`id`"])
    def test_shell_metacharacters_rejected(self, value) -> None:
        with pytest.raises(ParameterValidationError) as excinfo:
            parse_additional_options(value)
        assert excinfo.value.parameter == "additional_options"
