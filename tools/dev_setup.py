#!/usr/bin/env python3

import os
import venv
from pathlib import Path
from subprocess import check_call

repo_dir = Path(__file__).resolve().parent.parent
os.chdir(str(repo_dir))

print("=== Update python virtualenv ===")
venv_dir = repo_dir / "python_venv"
if not (venv_dir / "bin/activate").is_file():
    venv.create(venv_dir, symlinks=True, with_pip=True)

check_call([venv_dir / "bin/pip", "install", "-e", ".[test,dev]"])
print("\n::: Setup complete! :::")
