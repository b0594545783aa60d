# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Shared fakes: scripted prompts, a fake Docker SDK client, a recording
launcher and compose runner. No test touches a real daemon or subprocess.
"""

import io
from pathlib import Path
from typing import Any, Optional, Sequence

import pytest
from docker.errors import DockerException
from rich.console import Console

from dockyard_src.models import CommandResult, Settings
from dockyard_src.platforms import load_platforms_config


class ScriptedInteraction:
    """Answers prompts from a list; fails on any unexpected prompt"""

    def __init__(self, answers: Sequence[Any] = ()):
        self.answers = list(answers)
        self.prompts: list[str] = []

    def _next(self, message: str) -> Any:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)

    def select_one(self, message: str, options: Sequence[str]) -> str:
        answer = self._next(message)
        if isinstance(answer, int):
            return options[answer]
        assert answer in options, f"{answer!r} not in {list(options)}"
        return answer

    def select_many(self, message: str, options: Sequence[str]) -> list[str]:
        answer = self._next(message)
        assert all(item in options for item in answer)
        return list(answer)

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(self._next(message))

    def read_line(self, message: str) -> str:
        return str(self._next(message))

    def read_secret(self, message: str) -> str:
        return str(self._next(message))


class FakeClient:
    def __init__(self, factory: "FakeClientFactory", outcome: Any):
        self.factory = factory
        self.outcome = outcome
        self.closed = False

    def ping(self) -> bool:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def version(self) -> dict[str, Any]:
        return {"Version": "27.1.1", "ApiVersion": "1.46", "Os": "linux", "Arch": "amd64"}

    def info(self) -> dict[str, Any]:
        return {"Containers": 3, "ContainersRunning": 1, "Images": 7}

    def close(self) -> None:
        self.closed = True
        self.factory.closed += 1


class FakeClientFactory:
    """Each call builds a client whose ping yields the next scripted outcome"""

    def __init__(self, outcomes: Sequence[Any] = (True,), repeat_last: bool = True):
        self.outcomes = list(outcomes)
        self.repeat_last = repeat_last
        self.calls = 0
        self.closed = 0
        self.timeouts: list[float] = []

    def __call__(self, timeout: float) -> FakeClient:
        self.timeouts.append(timeout)
        index = min(self.calls, len(self.outcomes) - 1)
        self.calls += 1
        return FakeClient(self, self.outcomes[index])


def unreachable(message: str = "Error while fetching server API version") -> DockerException:
    return DockerException(message)


class WaitRecorder:
    """Stands in for Event.wait: records durations, optionally cancels"""

    def __init__(self, cancel_after: Optional[int] = None, interrupt_after: Optional[int] = None):
        self.waits: list[float] = []
        self.cancel_after = cancel_after
        self.interrupt_after = interrupt_after

    def __call__(self, seconds: float) -> bool:
        if self.interrupt_after is not None and len(self.waits) >= self.interrupt_after:
            raise KeyboardInterrupt
        self.waits.append(seconds)
        return self.cancel_after is not None and len(self.waits) > self.cancel_after


class FakeLauncher:
    def __init__(self, returncode: int = 0, output: str = ""):
        self.returncode = returncode
        self.output = output
        self.calls: list[tuple[str, tuple[str, ...], Optional[str]]] = []

    def run_command(
        self, name: str, args: list[str], input_text: Optional[str] = None
    ) -> CommandResult:
        self.calls.append((name, tuple(args), input_text))
        return CommandResult(
            argv=(name, *args), returncode=self.returncode, stderr=self.output
        )

    def launch_application(self, name: str) -> CommandResult:
        return self.run_command("open", ["-a", name])


class FakeComposeRunner:
    """Records compose argv; returns scripted results in order"""

    def __init__(self, results: Sequence[CommandResult] = ()):
        self.results = list(results)
        self.calls: list[tuple[Path, list[str]]] = []
        self.streamed: list[tuple[Path, list[str]]] = []
        self.stream_returncode = 0

    def build_argv(self, args: list[str]) -> list[str]:
        return ["docker", "compose", *args]

    def run_compose_command(self, working_dir: Path, argv: list[str]) -> CommandResult:
        self.calls.append((working_dir, list(argv)))
        if self.results:
            return self.results.pop(0)
        return CommandResult(argv=tuple(self.build_argv(argv)), returncode=0)

    def stream_compose_command(self, working_dir: Path, argv: list[str]) -> int:
        self.streamed.append((working_dir, list(argv)))
        return self.stream_returncode


class FakeMonitor:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls = 0

    def ensure_ready(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error


def make_console() -> Console:
    return Console(file=io.StringIO(), record=True, width=200, color_system=None)


def fail(returncode: int = 1, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(
        argv=("docker", "compose"), returncode=returncode, stdout=stdout, stderr=stderr
    )


def ps_line(service: str, state: str, status: str) -> str:
    return (
        '{"Name": "app-%s-1", "Service": "%s", "ID": "0123456789abcdef", '
        '"State": "%s", "Status": "%s", "Image": "app-%s"}'
        % (service, service, state, status, service)
    )


@pytest.fixture
def platforms():
    return load_platforms_config()


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, projects_file=tmp_path / "projects.json")


@pytest.fixture
def console():
    return make_console()


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "web"
    path.mkdir()
    (path / "compose.yaml").write_text("services:\n  app:\n    image: nginx\n")
    return path
