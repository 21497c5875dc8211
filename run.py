#!/usr/bin/env python3
"""
Morning Lights - one-shot launcher (asyncpg + WiZ UDP)

What it does:
- Creates .venv if missing
- Installs requirements.txt into .venv
- Runs the lights-off job once (point cron or a systemd timer at this file)

Usage:
  python run.py                  # wait until 30 min before sunrise, then turn lights off
  CLI options:
    python run.py --no-wait      # act immediately (the scheduling decision is still logged)
    python run.py --init-db      # create the machine and log tables, then exit
    python run.py --no-install   # skip pip install
"""

from __future__ import annotations

import argparse
import subprocess
import sys
import textwrap
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent
VENV_DIR = PROJECT_ROOT / ".venv"
VENV_PYTHON = VENV_DIR / "bin" / "python"
JOB_MODULE = "morning_lights.jobs.lights_off"


def _call(cmd: list[str], *, check: bool = True) -> int:
    # Echo the command so cron mail shows what ran
    print("> " + " ".join(cmd))
    return subprocess.run(cmd, cwd=str(PROJECT_ROOT), check=check).returncode


def ensure_project_layout() -> None:
    if not (PROJECT_ROOT / "requirements.txt").exists():
        raise FileNotFoundError(f"Missing requirements.txt in {PROJECT_ROOT}")
    if not (PROJECT_ROOT / "morning_lights" / "jobs" / "lights_off.py").exists():
        raise FileNotFoundError(f"Missing morning_lights/jobs/lights_off.py in {PROJECT_ROOT}")
    if not (PROJECT_ROOT / ".env").exists():
        # Not fatal, the variables may come from the real environment
        print("Warning: no .env file found. DB_HOST, NETWORK_ID, LAT, LNG etc. must be set in the environment.")


def prepare_venv(install: bool) -> Path:
    if not VENV_PYTHON.exists():
        _call([sys.executable, "-m", "venv", str(VENV_DIR)])
    if install:
        _call([str(VENV_PYTHON), "-m", "pip", "install", "--quiet", "-r", str(PROJECT_ROOT / "requirements.txt")])
    return VENV_PYTHON


def run_job(venv_py: Path, *, no_wait: bool, init_db: bool) -> int:
    cmd = [str(venv_py), "-m", JOB_MODULE]
    if no_wait:
        cmd.append("--no-wait")
    if init_db:
        cmd.append("--init-db")
    return _call(cmd, check=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="Morning Lights Launcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """
            One-shot launcher for the morning lights job.

            Modes:
              (default)   sleep until 30 minutes before sunrise, then turn lights off
              --no-wait   turn lights off now
              --init-db   create tables only
            """
        ).strip(),
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--no-wait", action="store_true", help="Turn lights off immediately")
    mode.add_argument("--init-db", action="store_true", help="Create the machine and log tables, then exit")

    parser.add_argument("--no-install", action="store_true", help="Skip pip install (assumes .venv is ready)")

    args = parser.parse_args()

    ensure_project_layout()
    venv_py = prepare_venv(install=not args.no_install)
    return run_job(venv_py, no_wait=args.no_wait, init_db=args.init_db)


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nStopped.")
        raise
    except Exception as e:
        print(f"\nERROR: {e}")
        raise
