"""Default C++ project layouts.

Every package in this ecosystem follows the same directory convention, so the
manifests only name the project and its namespace path:

    source/main/cpp       library sources
    source/main/include   public headers
    source/test/cpp       unittest sources (and test-support library sources)
    source/test/include   unittest headers
"""

from __future__ import annotations

from .model import Artifact, ArtifactKind

MAIN_SOURCE_DIRS = ["source/main/cpp"]
MAIN_INCLUDE_DIRS = ["source/main/include"]
TEST_SOURCE_DIRS = ["source/test/cpp"]
TEST_INCLUDE_DIRS = ["source/test/include"]
TEST_DEFINES = ["TARGET_TEST"]


def setup_cpp_lib_project(name: str, path: str) -> Artifact:
    return Artifact(
        name=name,
        kind=ArtifactKind.MAIN_LIBRARY,
        path=path,
        source_dirs=list(MAIN_SOURCE_DIRS),
        include_dirs=list(MAIN_INCLUDE_DIRS),
    )


def setup_cpp_test_lib_project(name: str, path: str) -> Artifact:
    return Artifact(
        name=name,
        kind=ArtifactKind.TEST_LIBRARY,
        path=path,
        source_dirs=list(TEST_SOURCE_DIRS),
        include_dirs=MAIN_INCLUDE_DIRS + TEST_INCLUDE_DIRS,
        defines=list(TEST_DEFINES),
    )


def setup_cpp_test_project(name: str, path: str) -> Artifact:
    return Artifact(
        name=name,
        kind=ArtifactKind.TEST_EXECUTABLE,
        path=path,
        source_dirs=list(TEST_SOURCE_DIRS),
        include_dirs=MAIN_INCLUDE_DIRS + TEST_INCLUDE_DIRS,
        defines=list(TEST_DEFINES),
    )
