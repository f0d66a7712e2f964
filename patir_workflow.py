# patir_workflow.py
# Workflow for checking patir itself: install, lint, tests and docs
from __future__ import annotations

from pathlib import Path

from patir import block, build


def check_readme(cmd):
    readme = Path("README.md")
    if not readme.exists():
        raise FileNotFoundError("README.md is missing")
    cmd.output = f"README.md has {len(readme.read_text().splitlines())} lines"


def workflow():
    return (
        build("patir-checks")
        # install first, nothing else makes sense if this fails
        .sh("Install package", "pip install -e '.[test]'", timeout=600)
        # lint findings should not hide test results
        .sh("Ruff check", "ruff check src tests", strategy="flunk_on_error")
        .sh("Run pytest", "pytest -q", timeout=900)
        .define_step(block("Check README", check_readme), "flunk_on_error")
        .build()
    )
