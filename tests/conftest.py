"""Pytest configuration and shared fixtures."""

import os
import stat
import sys
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from dotnet_mcp.config import Settings
from dotnet_mcp.mcp.context import ToolContext

# Stand-in for the dotnet CLI. Behaviour is picked by the first argument so
# handler tests can exercise success, classified failure, and long-running
# commands without a .NET SDK.
FAKE_DOTNET = '''#!{python}
import json
import sys
import time

args = sys.argv[1:]
verb = args[0] if args else ""

if verb == "run":
    print("Now listening on: http://localhost:5000", flush=True)
    print("warming up", file=sys.stderr, flush=True)
    time.sleep(60)
elif verb == "build" and any("Broken" in a for a in args):
    print("Program.cs(10,5): error CS0103: The name 'foo' does not exist in the current context")
    print("Program.cs(12,1): error CS1002: ; expected")
    sys.exit(1)
elif verb == "restore" and any("Missing" in a for a in args):
    print("error NU1101: Unable to find package Missing.Package", file=sys.stderr)
    sys.exit(1)
elif verb == "clean":
    print("something went wrong", file=sys.stderr)
    sys.exit(3)
elif verb == "slow":
    time.sleep(60)
else:
    print(json.dumps(args))
'''


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_dotnet(temp_dir: Path) -> Path:
    """Executable script that imitates the dotnet CLI."""
    if os.name != "posix":
        pytest.skip("fake dotnet script needs a POSIX shebang")
    path = temp_dir / "fake-dotnet"
    path.write_text(FAKE_DOTNET.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def python_settings() -> Settings:
    """Settings whose "dotnet" is the running Python interpreter."""
    return Settings(dotnet_path=sys.executable, session_retention_seconds=300.0)


@pytest_asyncio.fixture
async def context(fake_dotnet: Path):
    """Tool context wired to the fake dotnet script."""
    ctx = ToolContext(Settings(dotnet_path=str(fake_dotnet), session_retention_seconds=300.0))
    yield ctx
    await ctx.sessions.stop_all()
    ctx.sessions.clear()
    ctx.guard.clear()


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """A directory with an (empty) project file."""
    project = temp_dir / "app"
    project.mkdir()
    (project / "App.csproj").write_text("<Project Sdk=\"Microsoft.NET.Sdk\" />\n")
    return project
