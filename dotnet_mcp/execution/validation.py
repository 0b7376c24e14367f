"""Parameter validation for tool arguments.

Validators run before any lock is taken or process started. Each one accepts
an empty value as "use the SDK default" unless it says otherwise, and raises
ParameterValidationError with a message the caller can act on.
"""

import re
import shlex
from pathlib import Path
from typing import Any

_RUNTIME_IDENTIFIER = re.compile(
    r"^(win|linux|osx|android|ios|iossimulator)(10|11)?(-musl)?-(x64|x86|arm|arm64)$",
    re.IGNORECASE,
)
_FRAMEWORK = re.compile(r"^(net|netcoreapp|netstandard)\d+(\.\d+)*(-[a-z]+(\d+(\.\d+)*)?)?$", re.IGNORECASE)
_IDENTIFIER_CHARS = re.compile(r"^[A-Za-z0-9_-]+$")
_PACKAGE_ID = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
_MIGRATION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SAFE_OPTION_CHAR = re.compile(r"[A-Za-z0-9\-_. =]")

PROJECT_EXTENSIONS = (".csproj", ".fsproj", ".vbproj", ".sln", ".slnx")
CONFIGURATIONS = ("Debug", "Release")
VERBOSITY_LEVELS = ("q", "quiet", "m", "minimal", "n", "normal", "d", "detailed", "diag", "diagnostic")


class ParameterValidationError(ValueError):
    """A tool argument failed validation.

    Attributes:
        parameter: Name of the offending parameter.
        reason: Short reason tag ("required", "invalid format", ...).
    """

    def __init__(self, message: str, parameter: str | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.parameter = parameter
        self.reason = reason


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(arguments: dict[str, Any], name: str, message: str | None = None) -> str:
    """Get a required non-blank string argument."""
    value = arguments.get(name)
    if _blank(value):
        raise ParameterValidationError(
            message or f"The '{name}' parameter is required.", name, "required"
        )
    if not isinstance(value, str):
        raise ParameterValidationError(
            f"The '{name}' parameter must be a string.", name, "invalid type"
        )
    return value.strip()


def optional_str(arguments: dict[str, Any], name: str) -> str | None:
    """Get an optional string argument, None when blank."""
    value = arguments.get(name)
    if _blank(value):
        return None
    if not isinstance(value, str):
        raise ParameterValidationError(
            f"The '{name}' parameter must be a string.", name, "invalid type"
        )
    return value.strip()


def optional_int(arguments: dict[str, Any], name: str, minimum: int | None = None) -> int | None:
    """Get an optional integer argument."""
    value = arguments.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParameterValidationError(
            f"The '{name}' parameter must be an integer.", name, "invalid type"
        )
    if minimum is not None and value < minimum:
        raise ParameterValidationError(
            f"The '{name}' parameter must be at least {minimum}.", name, "out of range"
        )
    return value


def validate_framework(framework: str | None) -> None:
    if _blank(framework):
        return
    if not _FRAMEWORK.match(framework.strip()):  # type: ignore[union-attr]
        raise ParameterValidationError(
            f"Invalid framework '{framework}'. Framework must start with 'net', "
            "'netcoreapp', or 'netstandard'. Examples: net10.0, net8.0, "
            "netcoreapp3.1, netstandard2.0.",
            "framework",
            "invalid format",
        )


def validate_configuration(configuration: str | None) -> None:
    if _blank(configuration):
        return
    if configuration.strip().lower() not in (c.lower() for c in CONFIGURATIONS):  # type: ignore[union-attr]
        raise ParameterValidationError(
            f"Invalid configuration '{configuration}'. Configuration must be 'Debug' or 'Release'.",
            "configuration",
            "invalid value",
        )


def validate_project_path(project: str | None) -> None:
    """Check a project path's extension. Existence is left to the SDK."""
    if _blank(project):
        return
    suffix = Path(project.strip()).suffix.lower()  # type: ignore[union-attr]
    if suffix and suffix not in PROJECT_EXTENSIONS:
        raise ParameterValidationError(
            f"Invalid project file extension: {project}. Project files must have "
            ".csproj, .fsproj, .vbproj, .sln, or .slnx extension.",
            "project",
            "invalid extension",
        )


def validate_directory(path: str | None, parameter: str) -> None:
    if _blank(path):
        return
    if not Path(path.strip()).expanduser().is_dir():  # type: ignore[union-attr]
        raise ParameterValidationError(
            f"Directory not found: {path}. The {parameter} parameter must point to "
            "an existing directory.",
            parameter,
            "not found",
        )


def validate_verbosity(verbosity: str | None) -> None:
    if _blank(verbosity):
        return
    if verbosity.strip().lower() not in VERBOSITY_LEVELS:  # type: ignore[union-attr]
        raise ParameterValidationError(
            f"Invalid verbosity '{verbosity}'. Valid values are: q[uiet], m[inimal], "
            "n[ormal], d[etailed], diag[nostic].",
            "verbosity",
            "invalid value",
        )


def validate_runtime_identifier(runtime: str | None) -> None:
    if _blank(runtime):
        return
    if not _RUNTIME_IDENTIFIER.match(runtime.strip()):  # type: ignore[union-attr]
        raise ParameterValidationError(
            f"Invalid runtime identifier '{runtime}'. Runtime identifiers follow the "
            "pattern <os>-<arch>. Examples: win-x64, linux-x64, osx-arm64, linux-musl-x64.",
            "runtime",
            "invalid format",
        )


def validate_workload_ids(workload_ids: str | None) -> list[str]:
    """Parse a comma-separated list of workload ids.

    Returns:
        The trimmed, non-empty ids.
    """
    ids = [part.strip() for part in (workload_ids or "").split(",") if part.strip()]
    if not ids:
        raise ParameterValidationError(
            "At least one workload ID must be provided.", "workload_ids", "required"
        )
    for workload_id in ids:
        if not _IDENTIFIER_CHARS.match(workload_id):
            raise ParameterValidationError(
                f"Invalid workload ID '{workload_id}'. Workload IDs must contain only "
                "alphanumeric characters, hyphens, and underscores.",
                "workload_ids",
                "invalid format",
            )
    return ids


def validate_package_id(package_id: str) -> None:
    if not _PACKAGE_ID.match(package_id):
        raise ParameterValidationError(
            f"Invalid package ID '{package_id}'. Package IDs contain only letters, "
            "digits, dots, hyphens, and underscores.",
            "package_id",
            "invalid format",
        )


def validate_migration_name(name: str) -> None:
    if not _MIGRATION_NAME.match(name):
        raise ParameterValidationError(
            f"Invalid migration name '{name}'. Migration names must be valid C# "
            "identifiers (letters, digits, underscores; not starting with a digit).",
            "name",
            "invalid format",
        )


def parse_additional_options(options: str | None) -> list[str]:
    """Validate and split free-form extra CLI options.

    Only letters, digits, ``-``, ``_``, ``.``, space, and ``=`` are allowed,
    which rules out every shell metacharacter.

    Returns:
        The options split into arguments.
    """
    if _blank(options):
        return []
    if any(not _SAFE_OPTION_CHAR.match(char) for char in options):  # type: ignore[union-attr]
        raise ParameterValidationError(
            "additional_options contains invalid characters. Only alphanumeric "
            "characters, hyphens, underscores, dots, spaces, and equals signs are allowed.",
            "additional_options",
            "invalid characters",
        )
    return shlex.split(options)  # type: ignore[arg-type]
