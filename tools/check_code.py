#!/usr/bin/env python3

from pathlib import Path
from subprocess import check_call

from aseflat import logging_setup  # noqa: F401


def run(*args):
    print(f"\n=== {args[0]} ===")
    repo_dir = Path(__file__).resolve().parent.parent
    check_call(args, cwd=repo_dir)


sources = ["aseflat", "tools", "tests"]
run("black", *sources)
run("isort", *sources)
run("mypy", "aseflat", "tools")
run("pytest", "tests")
