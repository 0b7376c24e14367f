"""Error classification for .NET SDK output.

Scans build, compiler, and package-manager output line by line and turns each
recognized diagnostic into a ``ClassifiedError``. Three line shapes are
recognized, tried in this order (first match wins per line):

1. Compiler style: ``Program.cs(10,5): error CS0103: The name 'foo' ...``
2. NuGet style: ``error NU1101: Unable to find package X`` (prefix optional)
3. Build-tool style: ``MSBUILD : error MSB1003: Specify a project ...``

Lines reported as ``warning`` are skipped. When nothing matches and the exit
code is non-zero, one generic ``EXIT_<n>`` entry is synthesized so that a
failed command always yields at least one error.
"""

import re

from dotnet_mcp.diagnostics.dictionary import get_error_info
from dotnet_mcp.diagnostics.mcp_codes import get_mcp_error_code
from dotnet_mcp.models.results import ClassifiedError

_COMPILER_LINE = re.compile(
    r"^(?P<file>[^(]+)\((?P<line>\d+),(?P<col>\d+)\):\s+"
    r"(?P<severity>error|warning)\s+(?P<code>[A-Z]+\d+):\s+(?P<message>.+)"
)
_NUGET_LINE = re.compile(
    r"(?:\b(?P<severity>error|warning)\s+)?(?P<code>NU\d+):\s+(?P<message>.+)"
)
_BUILD_TOOL_LINE = re.compile(
    r"\b(?P<severity>error|warning)\s+(?P<code>[A-Z]+\d+):\s+(?P<message>.+)"
)

# Precedence matters: a compiler line also matches the build-tool shape.
_LINE_PATTERNS = (_COMPILER_LINE, _NUGET_LINE, _BUILD_TOOL_LINE)

_CODE_PREFIX = re.compile(r"^[A-Z]+")

_CATEGORY_BY_PREFIX = {
    "CS": "Compilation",
    "FS": "Compilation",
    "BC": "Compilation",
    "MSB": "Build",
    "NU": "Package",
    "NETSDK": "SDK",
}

_HINTS = {
    # C# compiler
    "CS0103": "The name does not exist in the current context. Check for typos or missing using directives.",
    "CS1001": "Identifier expected. Check for syntax errors or missing identifiers.",
    "CS1002": "Expected semicolon. Check for missing semicolons.",
    "CS1513": "Expected closing brace. Check for mismatched braces.",
    "CS0246": "Type or namespace not found. Check for missing using directives or package references.",
    # MSBuild
    "MSB3644": "The reference assemblies were not found. Install the .NET SDK or targeting pack for the specified framework.",
    "MSB4236": "The SDK could not be found. Ensure the .NET SDK is installed and in PATH.",
    "MSB1003": "Specify a project or solution file. The directory does not contain one.",
    # NuGet
    "NU1101": "Unable to find package. Check package name and source.",
    "NU1102": "Unable to find package with version. Check version number.",
    "NU1103": "Unable to find a stable package. Consider using --prerelease.",
    "NU1605": "Detected package downgrade. Check package version constraints.",
    # SDK
    "NETSDK1045": "The current .NET SDK does not support targeting this framework. Update the SDK or change the target framework.",
    "NETSDK1004": "Assets file not found. Run 'dotnet restore' to generate it.",
}

GENERIC_HINT = "Check the command syntax and arguments"
NO_OUTPUT_MESSAGE = "Command failed with no error output"
_FALLBACK_MESSAGE_LIMIT = 500


def get_category(code: str) -> str:
    """Derive the error category from a diagnostic code's letter prefix.

    Args:
        code: Diagnostic code such as "CS0103" or "NETSDK1045".

    Returns:
        "Compilation", "Build", "Package", "SDK", or "Unknown".
    """
    match = _CODE_PREFIX.match(code.strip().upper())
    if not match:
        return "Unknown"
    return _CATEGORY_BY_PREFIX.get(match.group(0), "Unknown")


def get_hint(code: str) -> str | None:
    """Get the short remediation hint for a well-known code."""
    return _HINTS.get(code.strip().upper())


def _build_error(code: str, message: str, exit_code: int) -> ClassifiedError:
    category = get_category(code)
    info = get_error_info(code)
    return ClassifiedError(
        code=code,
        category=category,
        message=message,
        hint=get_hint(code),
        mcp_error_code=get_mcp_error_code(code, category, exit_code),
        explanation=info.explanation if info and info.explanation else None,
        documentation_url=info.documentation_url if info else None,
        suggested_fixes=info.suggested_fixes if info and info.suggested_fixes else None,
    )


def classify_line(line: str, exit_code: int) -> ClassifiedError | None:
    """Classify a single output line.

    Args:
        line: One line of process output.
        exit_code: Exit code of the process that produced it.

    Returns:
        The classified error, or None if the line is not an error diagnostic.
    """
    # Every recognized error shape contains one of these
    if "error" not in line and "NU" not in line:
        return None
    for pattern in _LINE_PATTERNS:
        match = pattern.search(line)
        if match is None:
            continue
        if match.group("severity") == "warning":
            return None
        message = match.group("message").strip()
        return _build_error(match.group("code"), message, exit_code)
    return None


def _fallback_message(stderr: str | None) -> str:
    text = (stderr or "").strip()
    if not text:
        return NO_OUTPUT_MESSAGE
    if len(text) > _FALLBACK_MESSAGE_LIMIT:
        return text[:_FALLBACK_MESSAGE_LIMIT] + "..."
    return text


def classify(
    text: str | None,
    exit_code: int,
    stderr: str | None = None,
) -> list[ClassifiedError]:
    """Classify process output into structured errors.

    Args:
        text: Output to scan, usually stdout and stderr combined.
        exit_code: Process exit code.
        stderr: Standard error on its own, used for the generic fallback
            message. Defaults to ``text``.

    Returns:
        One entry per recognized error line, in output order. When nothing is
        recognized and ``exit_code`` is non-zero, a single ``EXIT_<n>`` entry.
        Empty when nothing is recognized and the exit code is zero.
    """
    errors: list[ClassifiedError] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        error = classify_line(line, exit_code)
        if error is not None:
            errors.append(error)

    if errors or exit_code == 0:
        return errors

    code = f"EXIT_{exit_code}"
    category = "Unknown"
    return [
        ClassifiedError(
            code=code,
            category=category,
            message=_fallback_message(text if stderr is None else stderr),
            hint=GENERIC_HINT,
            mcp_error_code=get_mcp_error_code(code, category, exit_code),
        )
    ]
