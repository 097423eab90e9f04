from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _env_with_pythonpath(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path("src").resolve())
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    env["HOME"] = str(tmp_path)
    return env


def _run(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [
            sys.executable,
            "-m",
            "retryloop",
            "--config",
            str(tmp_path / "config.toml"),
            "--log-file",
            str(tmp_path / "retryloop.log"),
            *args,
        ],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(tmp_path),
        timeout=60,
    )


def test_cli_module_reports_invalid_args_via_exit_code(tmp_path: Path) -> None:
    completed = _run(tmp_path, "--attempts", "nope", "--", sys.executable, "-c", "pass")

    assert completed.returncode == 2
    assert "--attempts must be an integer" in completed.stderr


def test_cli_module_retries_until_command_succeeds(tmp_path: Path) -> None:
    marker = tmp_path / "marker"
    script = (
        "import pathlib, sys\n"
        f"p = pathlib.Path({str(marker)!r})\n"
        "n = int(p.read_text()) if p.exists() else 0\n"
        "p.write_text(str(n + 1))\n"
        "sys.exit(0 if n >= 2 else 1)\n"
    )

    completed = _run(tmp_path, "--attempts", "5", "--max-backoff", "0.01", "--", sys.executable, "-c", script)

    assert completed.returncode == 0
    assert marker.read_text() == "3"


def test_cli_module_reports_exhaustion(tmp_path: Path) -> None:
    completed = _run(
        tmp_path,
        "--attempts",
        "1",
        "--max-backoff",
        "0",
        "--",
        sys.executable,
        "-c",
        "raise SystemExit(7)",
    )

    assert completed.returncode == 5
    assert "status 7" in completed.stderr


def test_cli_module_honours_timeout(tmp_path: Path) -> None:
    completed = _run(
        tmp_path,
        "--attempts",
        "3",
        "--timeout",
        "0.5",
        "--",
        sys.executable,
        "-c",
        "import time; time.sleep(30)",
    )

    assert completed.returncode == 6
    assert "deadline exceeded" in completed.stderr
