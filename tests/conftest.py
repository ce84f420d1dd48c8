# tests/conftest.py
"""
Shared fixtures. Settings are read at import time, so the environment is
prepared here before any site_engine module is imported.
"""
import json
import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("NETLIFY_SITE_ID", "test-site")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("NETLIFY_JSON_OUTPUT", "false")

# Stand-in for the Netlify CLI. Behaviour comes from FAKE_CLI_* variables;
# each run records its arguments, environment and staged files as JSON.
FAKE_CLI = r'''
import json, os, sys, time

args = sys.argv[1:]
site_dir = next(a.split("=", 1)[1] for a in args if a.startswith("--dir="))

files = {}
for root, _, names in os.walk(site_dir):
    for name in names:
        path = os.path.join(root, name)
        with open(path, encoding="utf-8") as f:
            files[os.path.relpath(path, site_dir).replace(os.sep, "/")] = f.read()

record_dir = os.environ.get("FAKE_CLI_RECORD_DIR")
if record_dir:
    with open(os.path.join(record_dir, "%d.json" % os.getpid()), "w") as f:
        json.dump({
            "args": args,
            "dir": site_dir,
            "files": files,
            "token": os.environ.get("NETLIFY_AUTH_TOKEN"),
        }, f)

time.sleep(float(os.environ.get("FAKE_CLI_SLEEP", "0")))
sys.stdout.write(os.environ.get("FAKE_CLI_STDOUT", ""))
sys.stderr.write(os.environ.get("FAKE_CLI_STDERR", ""))
sys.exit(int(os.environ.get("FAKE_CLI_EXIT", "0")))
'''


class FakeCli:
    """Handle on the fake deploy command used by a test"""

    def __init__(self, script: Path, record_dir: Path, monkeypatch):
        self.command = [sys.executable, str(script)]
        self.record_dir = record_dir
        self._monkeypatch = monkeypatch
        monkeypatch.setenv("FAKE_CLI_RECORD_DIR", str(record_dir))

    def behave(self, stdout: str = "", stderr: str = "", exit_code: int = 0, sleep: float = 0):
        self._monkeypatch.setenv("FAKE_CLI_STDOUT", stdout)
        self._monkeypatch.setenv("FAKE_CLI_STDERR", stderr)
        self._monkeypatch.setenv("FAKE_CLI_EXIT", str(exit_code))
        self._monkeypatch.setenv("FAKE_CLI_SLEEP", str(sleep))

    @property
    def runs(self):
        return [
            json.loads(p.read_text(encoding="utf-8"))
            for p in sorted(self.record_dir.glob("*.json"))
        ]


@pytest.fixture
def fake_cli(tmp_path, monkeypatch):
    script = tmp_path / "fake_netlify.py"
    script.write_text(FAKE_CLI, encoding="utf-8")
    record_dir = tmp_path / "runs"
    record_dir.mkdir()
    return FakeCli(script, record_dir, monkeypatch)


@pytest.fixture
def scratch_root(tmp_path):
    root = tmp_path / "scratch"
    root.mkdir()
    return root
