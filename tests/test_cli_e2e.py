from __future__ import annotations
from pathlib import Path
import json
import os
import subprocess
import sys

from manifestc.cli import main

REPO_ROOT = Path(__file__).resolve().parents[1]


def run_manifestc(args, extra_env=None):
    cmd = [sys.executable, "-m", "manifestc"] + args
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT / "src")}
    env.update(extra_env or {})
    return subprocess.run(cmd, cwd=REPO_ROOT, env=env, capture_output=True, text=True)


def test_cli_generates_plan(tmp_path: Path):
    out = tmp_path / "target"
    p = run_manifestc(["callocator", "--out", str(out)])
    assert p.returncode == 0, p.stderr
    assert "OK." in p.stdout
    plan = json.loads((out / "callocator.plan.json").read_text(encoding="utf-8"))
    assert plan["root"] == "callocator"
    assert (out / "build_report.json").exists()


def test_cli_output_dir_from_env(tmp_path: Path):
    out = tmp_path / "from_env"
    p = run_manifestc(["cbase", "--shape", "init-emit"], {"MANIFESTC_OUTPUT_DIR": str(out)})
    assert p.returncode == 0, p.stderr
    assert (out / "cbase.plan.json").exists()


def test_cli_required_toolchain_failure(tmp_path: Path):
    out = tmp_path / "target"
    p = run_manifestc([
        "callocator", "--out", str(out),
        "--toolchain", "no-such-compiler-xyz", "--require-toolchain", "--json-diagnostics",
    ])
    assert p.returncode == 2
    start = p.stderr.index("{")
    rep = json.loads(p.stderr[start:])
    assert rep["status"] == "error"
    assert rep["phase"] == "failed"
    assert rep["diagnostics"][0]["code"] == "MFC-ENV-0001"
    assert not (out / "callocator.plan.json").exists()


def test_cli_list(capsys):
    assert main(["--list"]) == 0
    assert capsys.readouterr().out.split() == ["callocator", "cbase", "cunittest"]


def test_cli_unknown_package(capsys):
    assert main(["does-not-exist"]) == 1
    assert "Unknown package" in capsys.readouterr().err


def test_cli_requires_package(capsys):
    assert main([]) == 1


def test_cli_module_reference(tmp_path: Path):
    out = tmp_path / "target"
    rc = main(["manifestc.packages.cunittest:get_package", "--out", str(out)])
    assert rc == 0
    assert (out / "cunittest.plan.json").exists()
