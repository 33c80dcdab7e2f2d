from __future__ import annotations
import logging
from typing import List

import pytest

from manifestc.generator import Generator


class RecordingGenerator(Generator):
    def __init__(self, init_ok: bool = True):
        self.init_ok = init_ok
        self.calls: List[str] = []
        self.generated = None

    def init(self) -> bool:
        self.calls.append("init")
        return self.init_ok

    def prepare_files(self, root) -> None:
        self.calls.append("prepare_files")

    def generate(self, root) -> None:
        self.calls.append("generate")
        self.generated = root

    def abort(self) -> None:
        self.calls.append("abort")


@pytest.fixture
def recorder():
    return RecordingGenerator()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # cli.main() reconfigures the root logger
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
