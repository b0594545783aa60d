# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.


import pytest
from conftest import (
    FakeClientFactory,
    FakeLauncher,
    ScriptedInteraction,
    WaitRecorder,
    make_console,
    unreachable,
)

from dockyard_src.errors import (
    DaemonUnreachableError,
    NotInstalledError,
    RecoveryCancelledError,
    RecoveryExhaustedError,
)
from dockyard_src.health import HealthMonitor
from dockyard_src.models import Settings

AUTO, WAIT, MANUAL = 0, 1, 2


def _monitor(
    platforms,
    settings,
    os_name="linux",
    outcomes=(True,),
    answers=(),
    installed=("docker",),
    launcher=None,
    wait=None,
):
    factory = FakeClientFactory(outcomes)
    interaction = ScriptedInteraction(answers)
    wait = wait or WaitRecorder()
    monitor = HealthMonitor(
        platforms,
        settings,
        interaction,
        launcher=launcher or FakeLauncher(),
        client_factory=factory,
        which=lambda name: f"/usr/local/bin/{name}" if name in installed else None,
        os_name=os_name,
        wait=wait,
        console=make_console(),
    )
    return monitor, factory, interaction, wait


# ============================================================================
# check_status
# ============================================================================


def test_missing_executable_never_creates_client(platforms, settings):
    monitor, factory, _, _ = _monitor(platforms, settings, installed=())

    status = monitor.check_status()

    assert not status.installed
    assert not status.ok
    assert factory.calls == 0
    assert status.install_options == tuple(platforms.platforms["linux"].install_options)


def test_reachable_daemon(platforms, settings):
    monitor, factory, _, _ = _monitor(platforms, settings)

    status = monitor.check_status()

    assert status.ok
    assert factory.timeouts == [settings.ping_timeout]
    assert factory.closed == 1


def test_ping_error_is_reported_and_client_closed(platforms, settings):
    monitor, factory, _, _ = _monitor(
        platforms, settings, outcomes=(unreachable("connection refused"),)
    )

    status = monitor.check_status()

    assert status.installed
    assert not status.daemon_reachable
    assert "connection refused" in status.error_detail
    assert factory.closed == 1


def test_ping_returning_false_counts_as_unreachable(platforms, settings):
    monitor, _, _, _ = _monitor(platforms, settings, outcomes=(False,))

    status = monitor.check_status()

    assert not status.daemon_reachable
    assert status.error_detail == "daemon did not answer ping"


def test_unknown_platform_uses_linux_profile(platforms, settings):
    monitor, _, _, _ = _monitor(platforms, settings, os_name="sunos")

    assert monitor.profile == platforms.platforms["linux"]


# ============================================================================
# ensure_ready
# ============================================================================


def test_healthy_engine_never_triggers_recovery(platforms, settings):
    monitor, factory, interaction, wait = _monitor(platforms, settings, os_name="darwin")

    monitor.ensure_ready()

    assert factory.calls == 1
    assert interaction.prompts == []
    assert wait.waits == []


def test_not_installed_raises_with_install_instructions(platforms, settings):
    monitor, _, _, _ = _monitor(platforms, settings, os_name="darwin", installed=())

    with pytest.raises(NotInstalledError) as excinfo:
        monitor.ensure_ready()

    assert str(excinfo.value) == platforms.error_messages.install_runtime
    assert excinfo.value.status.install_options == tuple(
        platforms.platforms["darwin"].install_options
    )


@pytest.mark.parametrize(
    "os_name, message_key",
    [
        ("linux", "docker_daemon_manual"),
        ("freebsd", "docker_daemon_manual"),
        ("windows", "docker_desktop_manual"),
    ],
)
def test_unreachable_outside_macos_fails_without_prompting(
    platforms, settings, os_name, message_key
):
    monitor, _, interaction, wait = _monitor(
        platforms, settings, os_name=os_name, outcomes=(unreachable(),)
    )

    with pytest.raises(DaemonUnreachableError) as excinfo:
        monitor.ensure_ready()

    assert str(excinfo.value) == getattr(platforms.error_messages, message_key)
    assert interaction.prompts == []
    assert wait.waits == []


def test_macos_non_interactive_fails_fast(platforms):
    settings = Settings(_env_file=None, interactive=False)
    monitor, _, _, wait = _monitor(
        platforms, settings, os_name="darwin", outcomes=(unreachable(),)
    )

    with pytest.raises(DaemonUnreachableError) as excinfo:
        monitor.ensure_ready()

    assert str(excinfo.value) == platforms.error_messages.start_runtime_manually
    assert wait.waits == []


# ============================================================================
# Wait and retry
# ============================================================================


def test_wait_choice_exhausts_after_max_retries(platforms, settings):
    monitor, factory, interaction, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(),),
        answers=[WAIT, 0],
    )

    with pytest.raises(RecoveryExhaustedError) as excinfo:
        monitor.ensure_ready()

    assert wait.waits == [5.0] * 12
    # initial probe plus one per retry
    assert factory.calls == 13
    assert factory.closed == 13
    assert str(excinfo.value) == platforms.error_messages.recovery_exhausted
    assert interaction.prompts == [
        platforms.ui_options.runtime_options_message,
        platforms.ui_options.startup_options_message,
    ]


def test_wait_stops_at_first_success(platforms, settings):
    monitor, factory, _, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(), unreachable(), True),
        answers=[WAIT],
    )

    monitor.ensure_ready()

    assert wait.waits == [5.0, 5.0]
    assert factory.calls == 3


def test_retry_bounds_follow_settings(platforms):
    settings = Settings(_env_file=None, max_retries=3, retry_interval=0.5, interactive=False)
    monitor, factory, _, wait = _monitor(
        platforms, settings, os_name="darwin", outcomes=(unreachable(),)
    )

    with pytest.raises(RecoveryExhaustedError):
        monitor.wait_and_retry()

    assert wait.waits == [0.5, 0.5, 0.5]
    assert factory.calls == 3


def test_cancelled_wait_stops_probing(platforms, settings):
    monitor, factory, _, _ = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(),),
        answers=[WAIT],
        wait=WaitRecorder(cancel_after=0),
    )

    with pytest.raises(RecoveryCancelledError):
        monitor.ensure_ready()

    assert factory.calls == 1


def test_interrupted_wait_is_cancellation(platforms, settings):
    monitor, factory, _, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(),),
        answers=[WAIT],
        wait=WaitRecorder(interrupt_after=2),
    )

    with pytest.raises(RecoveryCancelledError):
        monitor.ensure_ready()

    assert wait.waits == [5.0, 5.0]
    assert factory.calls == 3
    assert not monitor.cancel_event.is_set()


def test_cancel_event_aborts_default_wait(platforms, settings):
    monitor = HealthMonitor(
        platforms,
        settings,
        ScriptedInteraction(),
        client_factory=FakeClientFactory((unreachable(),)),
        which=lambda name: "/usr/bin/docker",
        os_name="darwin",
        console=make_console(),
    )
    event_wait = monitor.cancel_event.wait

    def cancelling_wait(seconds):
        monitor.cancel_event.set()
        return event_wait(seconds)

    monitor._wait = cancelling_wait

    with pytest.raises(RecoveryCancelledError):
        monitor.wait_and_retry()

    assert not monitor.cancel_event.is_set()


def test_cancel_before_wait_starts(platforms, settings):
    wait = WaitRecorder()
    monitor, factory, _, _ = _monitor(
        platforms, settings, os_name="darwin", outcomes=(unreachable(),), wait=wait
    )
    monitor.cancel_event.set()

    with pytest.raises(RecoveryCancelledError):
        monitor.wait_and_retry()

    assert wait.waits == []
    assert factory.calls == 0
    assert not monitor.cancel_event.is_set()


# ============================================================================
# Automatic runtime start (macOS)
# ============================================================================


def test_auto_start_prefers_orbstack(platforms, settings):
    launcher = FakeLauncher()
    monitor, _, _, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(), True),
        answers=[AUTO],
        installed=("docker", "orbctl", "colima"),
        launcher=launcher,
    )

    monitor.ensure_ready()

    assert launcher.calls == [("open", ("-a", "OrbStack"), None)]
    assert wait.waits == [5.0]


def test_auto_start_uses_colima_without_orbstack(platforms, settings):
    launcher = FakeLauncher()
    monitor, _, _, _ = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(), True),
        answers=[AUTO],
        installed=("docker", "colima"),
        launcher=launcher,
    )

    monitor.ensure_ready()

    assert launcher.calls == [("colima", ("start",), None)]


def test_auto_start_falls_back_to_docker_desktop(platforms, settings):
    launcher = FakeLauncher()
    monitor, _, _, _ = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(), True),
        answers=[AUTO],
        launcher=launcher,
    )

    monitor.ensure_ready()

    assert launcher.calls == [("open", ("-a", "Docker"), None)]


@pytest.mark.parametrize(
    "installed, message_key",
    [
        (("docker", "orbctl"), "start_orbstack"),
        (("docker", "colima"), "start_colima"),
    ],
)
def test_failed_runtime_launch_gives_manual_instructions(
    platforms, settings, installed, message_key
):
    monitor, _, _, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(),),
        answers=[AUTO],
        installed=installed,
        launcher=FakeLauncher(returncode=1, output="boom"),
    )

    with pytest.raises(DaemonUnreachableError) as excinfo:
        monitor.ensure_ready()

    assert str(excinfo.value) == getattr(platforms.error_messages, message_key)
    assert wait.waits == []


def test_manual_choice_shows_startup_options(platforms, settings):
    monitor, _, _, wait = _monitor(
        platforms,
        settings,
        os_name="darwin",
        outcomes=(unreachable(),),
        answers=[MANUAL, 1],
    )

    with pytest.raises(DaemonUnreachableError) as excinfo:
        monitor.ensure_ready()

    assert str(excinfo.value) == platforms.error_messages.auto_start_setup
    assert wait.waits == []


def test_describe_engine(platforms, settings):
    monitor, factory, _, _ = _monitor(platforms, settings)

    details = monitor.describe_engine()

    assert details["version"]["Version"] == "27.1.1"
    assert details["info"]["Images"] == 7
    assert factory.closed == 1
