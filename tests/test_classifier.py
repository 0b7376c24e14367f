"""Tests for SDK output classification."""

import time

import pytest

from dotnet_mcp.diagnostics import mcp_codes
from dotnet_mcp.diagnostics.classifier import (
    GENERIC_HINT,
    NO_OUTPUT_MESSAGE,
    classify,
    classify_line,
    get_category,
    get_hint,
)


class TestLineShapes:
    """Each recognized line shape yields one error."""

    def test_compiler_line(self) -> None:
        error = classify_line(
            "Program.cs(10,5): error CS0103: The name 'foo' does not exist in the current context",
            1,
        )
        assert error is not None
        assert error.code == "CS0103"
        assert error.category == "Compilation"
        assert error.message == "The name 'foo' does not exist in the current context"
        assert error.hint is not None
        assert error.mcp_error_code is None

    def test_compiler_line_with_project_suffix(self) -> None:
        error = classify_line(
            "/src/App/Program.cs(3,1): error CS1002: ; expected [/src/App/App.csproj]", 1
        )
        assert error is not None
        assert error.code == "CS1002"

    def test_nuget_line(self) -> None:
        error = classify_line(
            "/src/App.csproj : error NU1101: Unable to find package Foo.Bar. No packages exist with this id",
            1,
        )
        assert error is not None
        assert error.code == "NU1101"
        assert error.category == "Package"
        assert error.mcp_error_code == mcp_codes.RESOURCE_NOT_FOUND

    def test_nuget_line_without_severity(self) -> None:
        error = classify_line("NU1102: Unable to find package Foo with version (>= 9.0.0)", 1)
        assert error is not None
        assert error.code == "NU1102"

    def test_build_tool_line(self) -> None:
        error = classify_line(
            "MSBUILD : error MSB1003: Specify a project or solution file.", 1
        )
        assert error is not None
        assert error.code == "MSB1003"
        assert error.category == "Build"
        assert error.mcp_error_code == mcp_codes.RESOURCE_NOT_FOUND

    def test_sdk_line(self) -> None:
        error = classify_line(
            "error NETSDK1045: The current .NET SDK does not support targeting .NET 99.0.", 1
        )
        assert error is not None
        assert error.category == "SDK"
        assert error.mcp_error_code == mcp_codes.INVALID_PARAMS

    def test_warning_is_skipped(self) -> None:
        line = "Program.cs(4,13): warning CS0168: The variable 'x' is declared but never used"
        assert classify_line(line, 0) is None

    def test_unrelated_line(self) -> None:
        assert classify_line("Build FAILED.", 1) is None


class TestEnrichment:
    """Known codes pick up details from the bundled table."""

    def test_known_code_has_explanation_and_link(self) -> None:
        error = classify_line("error NU1101: Unable to find package Foo", 1)
        assert error is not None
        assert error.explanation
        assert error.documentation_url
        assert error.documentation_url.startswith("https://")
        assert error.suggested_fixes

    def test_unknown_code_has_no_enrichment(self) -> None:
        error = classify_line("Foo.cs(1,1): error CS9999: Something new", 1)
        assert error is not None
        assert error.category == "Compilation"
        assert error.explanation is None
        assert error.documentation_url is None
        assert error.hint is None


class TestClassify:
    """Whole-output classification."""

    def test_errors_in_output_order(self) -> None:
        text = (
            "  Determining projects to restore...\n"
            "Program.cs(10,5): error CS0103: The name 'foo' does not exist\n"
            "Program.cs(11,5): warning CS0168: unused\n"
            "Program.cs(12,1): error CS1002: ; expected\n"
            "Build FAILED.\n"
        )
        errors = classify(text, 1)
        assert [e.code for e in errors] == ["CS0103", "CS1002"]

    def test_fallback_for_unrecognized_failure(self) -> None:
        errors = classify("Segmentation fault", 139)
        assert len(errors) == 1
        assert errors[0].code == "EXIT_139"
        assert errors[0].category == "Unknown"
        assert errors[0].message == "Segmentation fault"
        assert errors[0].hint == GENERIC_HINT
        assert errors[0].mcp_error_code == mcp_codes.INTERNAL_ERROR

    def test_fallback_prefers_stderr_text(self) -> None:
        errors = classify("stdout noise\nboom", 2, stderr="boom")
        assert errors[0].message == "boom"

    def test_fallback_without_output(self) -> None:
        errors = classify("", 1)
        assert errors[0].message == NO_OUTPUT_MESSAGE

    def test_fallback_message_is_capped(self) -> None:
        errors = classify("x" * 2000, 1)
        assert len(errors[0].message) == 503
        assert errors[0].message.endswith("...")

    @pytest.mark.parametrize(
        "line",
        [
            "x" * 1_000_000,
            "error " + "x" * 1_000_000,
            "error NU" + " " * 1_000_000,
            " " * 1_000_000 + "error",
            "Program.cs" + "(" * 1_000_000 + " error",
        ],
    )
    def test_long_line_is_linear(self, line: str) -> None:
        start = time.perf_counter()
        errors = classify(line, 1)
        assert time.perf_counter() - start < 5.0
        assert [e.code for e in errors] == ["EXIT_1"]

    def test_success_with_no_errors(self) -> None:
        assert classify("Build succeeded.", 0) == []


class TestCategoriesAndHints:
    """Code prefix helpers."""

    def test_categories(self) -> None:
        assert get_category("CS0103") == "Compilation"
        assert get_category("FS0039") == "Compilation"
        assert get_category("BC30451") == "Compilation"
        assert get_category("MSB3644") == "Build"
        assert get_category("NU1605") == "Package"
        assert get_category("NETSDK1004") == "SDK"
        assert get_category("XYZ123") == "Unknown"
        assert get_category("") == "Unknown"

    def test_hint_lookup_ignores_case(self) -> None:
        assert get_hint("netsdk1004") == get_hint("NETSDK1004")
        assert "dotnet restore" in get_hint("NETSDK1004")
        assert get_hint("CS9999") is None
