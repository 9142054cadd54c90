"""Tests for buildscript.engine."""

from __future__ import annotations

import os

import pytest

from buildscript.config import EnvMode, Settings
from buildscript.engine import Engine
from buildscript.errors import ConfigurationError, InstallDeclined, RunError
from buildscript.lifecycle import TargetState
from buildscript.params import Toolchain
from buildscript.supervisor import ProcessSupervisor
from buildscript.target import Registry, Target
from buildscript.workspace import Workspace

_events: list[str] = []


class Tool(Target):
    def __init__(self, source: str) -> None:
        self.source = source

    @classmethod
    def initialize_host(cls, enabled, deps, params):
        return None

    @classmethod
    def initialize_cached(cls, enabled, deps, params):
        return cls("cached")

    @classmethod
    def initialize_local(cls, enabled, deps, params):
        return cls("local")

    def build(self, deps, params) -> None:
        _events.append(f"build {self.name}")


class Supervisor(Tool):
    exit_ok = True
    refuse = False

    def __init__(self, source: str) -> None:
        super().__init__(source)
        self.registered: list[str] = []

    def run(self, deps, params) -> None:
        _events.append("supervisor up")

    def register(self, command, name: str) -> None:
        if self.refuse:
            raise RunError(f"Failed starting task '{name}'")
        self.registered.append(name)

    def wait(self) -> bool:
        _events.append("wait")
        return self.exit_ok

    def close(self) -> None:
        _events.append("close")


class Service(Tool):
    @classmethod
    def depends(cls, recipe) -> None:
        recipe.mark_dependency("sup")

    def run_init(self, deps, params) -> None:
        self.command = params.command("/bin/service", str(params.next_port()))

    def run(self, deps, params) -> None:
        deps["sup"].register(self.command, self.name)


class Plugin(Tool):
    @classmethod
    def initialize_cached(cls, enabled, deps, params):
        params.add_member(Toolchain.JVM, cls.name)
        return cls("cached")


class Missing(Tool):
    @classmethod
    def initialize_cached(cls, enabled, deps, params):
        return None


@pytest.fixture(autouse=True)
def clean(monkeypatch):
    # recorded so the exported values are undone after each test
    for var in ("WORKSPACE", "MINDURKA_WORKSPACE"):
        monkeypatch.setenv(var, "")
    _events.clear()
    yield


@pytest.fixture
def reg():
    r = Registry()
    r.register("sup")(type("Sup", (Supervisor,), {}))
    r.register("svc")(type("Svc", (Service,), {}))
    r.register("plug")(type("Plug", (Plugin,), {}))
    r.register("missing")(type("Miss", (Missing,), {}))
    return r


@pytest.fixture
def engine(tmp_path, reg):
    return Engine(Workspace.at(tmp_path), Settings(), registry=reg, supervisor="sup")


class TestExecute:
    def test_build_only(self, engine):
        lifecycle = engine.execute(["plug"])
        assert _events == ["build plug"]
        assert lifecycle.states["plug"] is TargetState.BUILT
        assert lifecycle.states["sup"] is TargetState.UNBUILT

    def test_exports_workspace(self, engine):
        engine.execute(["plug"])
        assert os.environ["WORKSPACE"] == str(engine.workspace.root)
        assert os.environ["MINDURKA_WORKSPACE"] == str(engine.workspace.root)

    def test_writes_descriptors(self, engine):
        engine.execute(["plug"])
        root = engine.workspace.root
        assert "includeBuild 'plug'" in (root / "settings.gradle").read_text()
        assert (root / "Cargo.toml").is_file()
        assert (root / "buildscript" / "assets" / "shared.settings.gradle").is_file()

    def test_clears_build_output(self, engine):
        stale = engine.workspace.bin_dir / "stale.jar"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        engine.execute(["plug"])
        assert engine.workspace.bin_dir.is_dir()
        assert not stale.exists()

    def test_unknown_goal(self, engine):
        with pytest.raises(ConfigurationError):
            engine.execute(["nope"])
        assert _events == []

    def test_declined_install(self, engine):
        with pytest.raises(InstallDeclined):
            engine.execute(["missing"])

    def test_autoinstall(self, tmp_path, reg):
        engine = Engine(Workspace.at(tmp_path), Settings(env_mode=EnvMode.AUTOINSTALL), registry=reg, supervisor="sup")
        lifecycle = engine.execute(["missing"])
        assert lifecycle.targets["missing"].source == "local"


class TestRun:
    def test_run(self, engine):
        lifecycle = engine.execute(["svc", "run"])
        assert _events == ["build sup", "build svc", "supervisor up", "wait", "close"]
        # instances are dropped once the supervisor exits
        assert len(lifecycle.targets) == 0
        assert lifecycle.states["sup"] is TargetState.STOPPED
        assert lifecycle.states["svc"] is TargetState.STOPPED
        assert engine.workspace.run_dir.is_dir()

    def test_services_register_with_supervisor(self, engine, monkeypatch):
        seen = []
        monkeypatch.setattr(Supervisor, "wait", lambda self: seen.extend(self.registered) or True)
        engine.execute(["svc", "run"])
        assert seen == ["svc"]

    def test_supervisor_failure(self, engine, monkeypatch):
        monkeypatch.setattr(Supervisor, "exit_ok", False)
        with pytest.raises(RunError, match="non-zero"):
            engine.execute(["svc", "run"])

    def test_run_alone_starts_supervisor(self, engine):
        engine.execute(["run"])
        assert _events == ["build sup", "supervisor up", "wait", "close"]

    def test_supervisor_protocol(self):
        assert isinstance(Supervisor("x"), ProcessSupervisor)
        assert not isinstance(Tool("x"), ProcessSupervisor)

    def test_not_a_supervisor(self, tmp_path, reg):
        engine = Engine(Workspace.at(tmp_path), Settings(), registry=reg, supervisor="plug")
        with pytest.raises(RunError, match="not a process supervisor"):
            engine.execute(["run"])

    def test_failed_registration_closes_supervisor(self, engine, monkeypatch):
        monkeypatch.setattr(Supervisor, "refuse", True)
        with pytest.raises(RunError, match="svc"):
            engine.execute(["svc", "run"])
        # never waited on, but still torn down
        assert _events == ["build sup", "build svc", "supervisor up", "close"]

    def test_failed_run_init_closes_instances(self, engine, monkeypatch):
        def fail(self, deps, params):
            raise RunError("no config")

        monkeypatch.setattr(Service, "run_init", fail)
        with pytest.raises(RunError, match="no config"):
            engine.execute(["svc", "run"])
        assert _events[-1] == "close"
        assert "supervisor up" not in _events
