import pytest

from conftest import RecordingGenerator
from manifestc.context import build_package, package_factory
from manifestc.errors import AlreadyEmitted, DependencyCycle, EnvironmentInitError, OutOfOrderPhase
from manifestc.generator import Generator
from manifestc.model import Package
from manifestc.packages import callocator
from manifestc.pipeline import ManifestShape, Phase, Pipeline, run
from manifestc.projects import setup_cpp_lib_project


def root():
    return build_package(callocator.get_package)


def test_full_sequence(recorder):
    p = Pipeline(recorder)
    assert p.init() is True
    p.prepare_files()
    pkg = root()
    p.emit(pkg)
    assert recorder.calls == ["init", "prepare_files", "generate"]
    assert recorder.generated is pkg
    assert p.phase is Phase.EMITTED
    assert pkg.frozen


def test_emit_before_init(recorder):
    p = Pipeline(recorder)
    with pytest.raises(OutOfOrderPhase) as ei:
        p.emit(root())
    assert ei.value.diag.code == "MFC-PHS-0001"
    assert recorder.calls == []


def test_prepare_before_init(recorder):
    with pytest.raises(OutOfOrderPhase):
        Pipeline(recorder).prepare_files()


def test_emit_without_prepare_when_required(recorder):
    p = Pipeline(recorder, ManifestShape.INIT_PREPARE_EMIT)
    p.init()
    with pytest.raises(OutOfOrderPhase):
        p.emit(root())


def test_init_twice(recorder):
    p = Pipeline(recorder)
    p.init()
    with pytest.raises(OutOfOrderPhase):
        p.init()


def test_failed_init_blocks_everything():
    gen = RecordingGenerator(init_ok=False)
    p = Pipeline(gen)
    with pytest.raises(EnvironmentInitError) as ei:
        p.init()
    assert ei.value.diag.code == "MFC-ENV-0001"
    assert p.phase is Phase.FAILED
    with pytest.raises(OutOfOrderPhase):
        p.prepare_files()
    with pytest.raises(OutOfOrderPhase):
        p.emit(root())
    assert gen.calls == ["init"]


@pytest.mark.parametrize("op", ["init", "prepare_files", "emit"])
def test_any_phase_after_emit(recorder, op):
    p = Pipeline(recorder)
    p.init()
    p.prepare_files()
    pkg = root()
    p.emit(pkg)
    with pytest.raises(AlreadyEmitted):
        if op == "emit":
            p.emit(pkg)
        else:
            getattr(p, op)()


def test_emit_only_shape_initialises_inside_emit(recorder):
    p = Pipeline(recorder, ManifestShape.EMIT_ONLY)
    p.emit(root())
    assert recorder.calls == ["init", "generate"]


def test_emit_only_shape_with_failing_init():
    gen = RecordingGenerator(init_ok=False)
    p = Pipeline(gen, ManifestShape.EMIT_ONLY)
    with pytest.raises(EnvironmentInitError):
        p.emit(root())
    assert gen.calls == ["init"]


def test_init_emit_shape(recorder):
    p = Pipeline(recorder, "init-emit")
    p.init()
    p.emit(root())
    assert recorder.calls == ["init", "generate"]


def test_init_emit_shape_accepts_prepare(recorder):
    p = Pipeline(recorder, ManifestShape.INIT_EMIT)
    p.init()
    p.prepare_files()
    p.emit(root())
    assert p.phase is Phase.EMITTED


def test_emit_rejects_cyclic_graph(recorder):
    a = Package("a")
    b = Package("b")
    la = a.add_main_lib(setup_cpp_lib_project("a", ""))
    lb = b.add_main_lib(setup_cpp_lib_project("b", ""))
    a.add_package(b)
    b.add_package(a)
    la.dependencies.append(lb)
    lb.dependencies.append(la)
    p = Pipeline(recorder)
    p.init()
    p.prepare_files()
    with pytest.raises(DependencyCycle):
        p.emit(a)
    assert "generate" not in recorder.calls
    assert not a.frozen


@pytest.mark.parametrize("shape, calls", [
    (ManifestShape.EMIT_ONLY, ["init", "generate"]),
    (ManifestShape.INIT_EMIT, ["init", "generate"]),
    (ManifestShape.INIT_PREPARE_EMIT, ["init", "prepare_files", "generate"]),
])
def test_run_shapes(recorder, shape, calls):
    report = run(callocator.get_package, recorder, shape)
    assert report.ok
    assert report.phase is Phase.EMITTED
    assert recorder.calls == calls


def test_run_init_failure_skips_build():
    built = []

    @package_factory("never")
    def never(ctx):
        built.append(1)
        return Package("never")

    gen = RecordingGenerator(init_ok=False)
    report = run(never, gen)
    assert not report.ok
    assert report.phase is Phase.FAILED
    assert [d.code for d in report.diagnostics] == ["MFC-ENV-0001"]
    assert built == []
    assert gen.calls == ["init", "abort"]


def test_run_build_error_emits_nothing(recorder):
    @package_factory("broken")
    def broken(ctx):
        ctx.require(broken)
        return Package("broken")

    report = run(broken, recorder)
    assert report.status == "error"
    assert report.to_dict()["diagnostics"][0]["code"] == "MFC-PKG-0004"
    assert report.phase is Phase.FILES_PREPARED
    assert recorder.calls == ["init", "prepare_files", "abort"]


def test_generator_without_generate_cannot_be_built():
    class InitOnly(Generator):
        def init(self) -> bool:
            return True

    with pytest.raises(TypeError):
        InitOnly()


def test_successful_run_does_not_abort(recorder):
    report = run(callocator.get_package, recorder)
    assert report.ok
    assert "abort" not in recorder.calls
