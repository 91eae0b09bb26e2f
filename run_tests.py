#!/usr/bin/env python3
"""Run the Rabla test suite with coverage. Install requirements-test.txt first."""

import sys
import subprocess
import os
from pathlib import Path


def main():
    os.chdir(Path(__file__).parent)

    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests/",
        "-v",
        "--cov=rabla_pkg",
        "--cov-report=html",
        "--cov-report=term-missing",
        "--cov-fail-under=80"
    ], check=False)
    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
