"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import stat
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local logbridge package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of logbridge modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("logbridge"):
        del sys.modules[module_name]


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], Path]:
    """Factory for fake executables placed first on PATH.

    ``fake_bin("sf", body)`` writes ``body`` as a ``/bin/sh`` script named
    ``sf``. Every invocation appends its arguments to ``calls.log`` in the
    same directory before the body runs.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}:/usr/bin:/bin")

    def _make(name: str, body: str) -> Path:
        script = bin_dir / name
        script.write_text(
            "#!/bin/sh\n"
            f'echo "{name} $*" >> "{bin_dir}/calls.log"\n'
            f"{body}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def calls_log(tmp_path: Path) -> Callable[[], list[str]]:
    """Read back the invocations recorded by ``fake_bin`` scripts."""

    def _read() -> list[str]:
        path = tmp_path / "bin" / "calls.log"
        if not path.exists():
            return []
        return path.read_text().splitlines()

    return _read
