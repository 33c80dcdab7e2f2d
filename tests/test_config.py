import importlib
from pathlib import Path

import pytest

from manifestc.cli import main
from manifestc.config import GeneratorConfig
from manifestc.pipeline import ManifestShape
import manifestc.web


def test_defaults_from_empty_env():
    cfg = GeneratorConfig.from_env({})
    assert cfg.output_dir == Path("target")
    assert cfg.toolchain is None
    assert cfg.require_toolchain is False
    assert cfg.shape is ManifestShape.INIT_PREPARE_EMIT


def test_values_from_env():
    cfg = GeneratorConfig.from_env({
        "MANIFESTC_OUTPUT_DIR": "/tmp/x",
        "MANIFESTC_TOOLCHAIN": "clang++",
        "MANIFESTC_REQUIRE_TOOLCHAIN": "Yes",
        "MANIFESTC_SHAPE": "emit-only",
    })
    assert cfg.output_dir == Path("/tmp/x")
    assert cfg.toolchain == "clang++"
    assert cfg.require_toolchain is True
    assert cfg.shape is ManifestShape.EMIT_ONLY


def test_override_skips_none():
    cfg = GeneratorConfig.from_env({"MANIFESTC_TOOLCHAIN": "g++"})
    out = cfg.override(output_dir="build", toolchain=None, shape="init-emit", require_toolchain=None)
    assert out.output_dir == Path("build")
    assert out.toolchain == "g++"
    assert out.shape is ManifestShape.INIT_EMIT
    assert out.require_toolchain is False


def test_bad_shape():
    with pytest.raises(ValueError):
        GeneratorConfig.from_env({"MANIFESTC_SHAPE": "emit-twice"})


def test_bad_shape_names_the_variable():
    with pytest.raises(ValueError, match="MANIFESTC_SHAPE"):
        GeneratorConfig.from_env({"MANIFESTC_SHAPE": "bogus"})


def test_cli_bad_shape_env(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("MANIFESTC_SHAPE", "bogus")
    assert main(["callocator", "--out", str(tmp_path)]) == 1
    err = capsys.readouterr().err
    assert "ERROR" in err
    assert "bogus" in err
    assert list(tmp_path.iterdir()) == []


def test_web_module_imports_with_bad_env(monkeypatch):
    monkeypatch.setenv("MANIFESTC_SHAPE", "bogus")
    importlib.reload(manifestc.web)
