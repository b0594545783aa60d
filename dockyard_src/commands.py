#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
CLI commands for dockyard.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .auth import AuthWizard, RegistryAssistant, RegistryLogin
from .compose import ComposeManager, ComposeRunner
from .errors import DockyardError, EngineError
from .health import HealthMonitor
from .interaction import Interaction, RichInteraction
from .launcher import ProcessLauncher
from .manage import ProjectManagement
from .models import PlatformsConfig, Settings
from .platforms import load_platforms_config
from .project_health import ProjectHealthChecker
from .projects import ProjectStore, find_compose_file
from .runner import ProjectRunner

console = Console()
app = typer.Typer(
    name="dockyard",
    help="Manage Docker Compose projects",
    add_completion=False,
    invoke_without_command=True,
)

# Commands that work without a projects file
NO_PROJECTS_COMMANDS = ("auth", "engine", "manage")

STATE_EMOJI = {
    "running": "🟢",
    "exited": "🔴",
    "paused": "⏸️",
    "restarting": "🔄",
    "created": "⚪",
}


# ============================================================================
# Application context
# ============================================================================


@dataclass
class AppContext:
    """Components shared by all commands, built once per invocation"""

    settings: Settings
    console: Console
    interaction: Interaction
    platforms: PlatformsConfig
    monitor: HealthMonitor
    manager: ComposeManager
    store: ProjectStore
    login: RegistryLogin

    def runner(self) -> ProjectRunner:
        return ProjectRunner(
            self.store,
            self.manager,
            self.interaction,
            interactive=self.settings.interactive,
            console=self.console,
        )

    def health_checker(self) -> ProjectHealthChecker:
        return ProjectHealthChecker(
            self.store,
            self.manager,
            self.interaction,
            interactive=self.settings.interactive,
            console=self.console,
        )

    def management(self) -> ProjectManagement:
        return ProjectManagement(self.store, self.interaction, console=self.console)

    def auth_wizard(self) -> AuthWizard:
        return AuthWizard(self.login, console=self.console)


def build_context(settings: Settings, out: Optional[Console] = None) -> AppContext:
    out = out or console
    platforms = load_platforms_config(settings.platforms_file)
    interaction = RichInteraction(out)
    launcher = ProcessLauncher()

    monitor = HealthMonitor(
        platforms, settings, interaction, launcher=launcher, console=out
    )
    login = RegistryLogin(interaction, launcher, settings, console=out)
    manager = ComposeManager(
        ComposeRunner(settings.engine_command, console=out),
        monitor,
        registry_handler=RegistryAssistant(login, console=out).handle,
        console=out,
    )
    return AppContext(
        settings=settings,
        console=out,
        interaction=interaction,
        platforms=platforms,
        monitor=monitor,
        manager=manager,
        store=ProjectStore(settings.projects_file),
        login=login,
    )


@contextmanager
def cli_errors(out: Console) -> Iterator[None]:
    """Turn dockyard errors into exit code 1 and Ctrl+C into 130"""
    try:
        yield
    except DockyardError as e:
        out.print(f"[red]Error: {e}[/red]", highlight=False)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        out.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(130)


def setup_logging(verbose: bool) -> None:
    if not verbose:
        logging.getLogger("dockyard_src").setLevel(logging.WARNING)
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def get_context(ctx: typer.Context) -> AppContext:
    return ctx.obj


# ============================================================================
# Root callback
# ============================================================================


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("-v", "--verbose", help="Show debug logging")
    ] = False,
    projects_file: Annotated[
        Optional[Path],
        typer.Option("--projects-file", help="Projects file (default: projects.json)"),
    ] = None,
    no_input: Annotated[
        bool, typer.Option("--no-input", help="Never prompt; fail with instructions")
    ] = False,
):
    """Manage Docker Compose projects: start, stop and inspect them"""
    setup_logging(verbose)

    if not isinstance(ctx.obj, AppContext):
        overrides: dict[str, object] = {}
        if projects_file is not None:
            overrides["projects_file"] = projects_file
        if no_input:
            overrides["interactive"] = False
        with cli_errors(console):
            ctx.obj = build_context(Settings(**overrides))

    app_ctx = get_context(ctx)
    if ctx.invoked_subcommand in NO_PROJECTS_COMMANDS:
        with cli_errors(app_ctx.console):
            app_ctx.store.load()
        return

    with cli_errors(app_ctx.console):
        if app_ctx.store.exists or not app_ctx.settings.interactive:
            app_ctx.store.load()
        elif not app_ctx.management().ensure_projects_file():
            raise typer.Exit(1)

    if ctx.invoked_subcommand is None:
        start_interactive(app_ctx)


def start_interactive(app_ctx: AppContext) -> None:
    """Pick projects from a menu and start them"""
    out = app_ctx.console
    with cli_errors(out):
        app_ctx.monitor.ensure_ready()
        if not app_ctx.settings.interactive:
            out.print(
                "[yellow]Interactive selection needs a terminal; "
                "use 'dockyard start <project>'[/yellow]"
            )
            raise typer.Exit(1)

        names = app_ctx.interaction.select_many(
            "Select the projects you'd like to start:", app_ctx.store.sorted_names()
        )
        if not names:
            out.print("No projects selected.")
            return

        summary = app_ctx.runner().run(names)
    if summary.failed:
        raise typer.Exit(1)


# ============================================================================
# Project commands
# ============================================================================

ProjectArg = Annotated[str, typer.Argument(help="Project name")]


@app.command("list")
def list_projects(ctx: typer.Context):
    """List registered projects and their compose files"""
    app_ctx = get_context(ctx)
    out = app_ctx.console

    if not len(app_ctx.store):
        out.print("[yellow]No projects registered. Add one with 'dockyard manage'[/yellow]")
        return

    table = Table(title="Projects", show_header=True, header_style="bold magenta")
    table.add_column("Project", style="cyan", no_wrap=True)
    table.add_column("Path", style="green")
    table.add_column("Compose file", style="yellow")

    for name in app_ctx.store.sorted_names():
        project_dir = app_ctx.store.resolve(name)
        try:
            compose = find_compose_file(project_dir).name
        except DockyardError:
            compose = "[red]not found[/red]"
        table.add_row(name, str(project_dir), compose)

    out.print()
    out.print(table)


@app.command()
def start(
    ctx: typer.Context,
    project: ProjectArg,
    detach: Annotated[
        bool, typer.Option("-d/-D", "--detach/--no-detach", help="Detached mode")
    ] = True,
    remove_orphans: Annotated[
        bool,
        typer.Option(
            "--remove-orphans/--keep-orphans",
            help="Remove containers for services not in the compose file",
        ),
    ] = True,
):
    """Start a project with docker compose up"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.start(
            app_ctx.store.resolve(project), detach=detach, remove_orphans=remove_orphans
        )
    app_ctx.console.print(f"[green]✓[/green] Project {project} started successfully!")


@app.command()
def stop(
    ctx: typer.Context,
    project: ProjectArg,
    volumes: Annotated[
        bool, typer.Option("-v", "--volumes", help="Remove volumes")
    ] = False,
    rmi: Annotated[
        bool, typer.Option("--rmi", help="Remove images built for the project")
    ] = False,
):
    """Stop and remove a project's containers"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.stop(
            app_ctx.store.resolve(project), volumes=volumes, remove_images=rmi
        )
    app_ctx.console.print(f"[green]✓[/green] Project {project} stopped successfully!")


@app.command()
def restart(ctx: typer.Context, project: ProjectArg):
    """Restart a project's containers"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.restart(app_ctx.store.resolve(project))
    app_ctx.console.print(f"[green]✓[/green] Project {project} restarted successfully!")


@app.command()
def pause(ctx: typer.Context, project: ProjectArg):
    """Pause a project's containers"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.pause(app_ctx.store.resolve(project))
    app_ctx.console.print(f"[green]✓[/green] Project {project} paused")


@app.command()
def unpause(ctx: typer.Context, project: ProjectArg):
    """Unpause a project's containers"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.unpause(app_ctx.store.resolve(project))
    app_ctx.console.print(f"[green]✓[/green] Project {project} unpaused")


@app.command()
def pull(ctx: typer.Context, project: ProjectArg):
    """Pull the images of a project"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.pull(app_ctx.store.resolve(project))
    app_ctx.console.print(f"[green]✓[/green] Images for {project} pulled successfully!")


@app.command()
def build(
    ctx: typer.Context,
    project: ProjectArg,
    no_cache: Annotated[
        bool, typer.Option("--no-cache", help="Do not use cache when building")
    ] = False,
):
    """Build the images of a project"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.manager.build(app_ctx.store.resolve(project), no_cache=no_cache)
    app_ctx.console.print(f"[green]✓[/green] Project {project} built successfully!")


@app.command()
def logs(
    ctx: typer.Context,
    project: ProjectArg,
    follow: Annotated[
        bool, typer.Option("-f", "--follow", help="Follow log output")
    ] = False,
    tail: Annotated[
        Optional[int], typer.Option("--tail", help="Number of lines to show")
    ] = None,
    services: Annotated[
        Optional[list[str]], typer.Argument(help="Services to show logs for")
    ] = None,
):
    """Show a project's logs"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        returncode = app_ctx.manager.logs(
            app_ctx.store.resolve(project), services=services, follow=follow, tail=tail
        )
    if returncode:
        raise typer.Exit(returncode)


# ============================================================================
# Inspection
# ============================================================================


@app.command()
def status(
    ctx: typer.Context,
    project: Annotated[
        Optional[str], typer.Argument(help="Project name (default: all projects)")
    ] = None,
):
    """Show container status for one project or a summary for all"""
    app_ctx = get_context(ctx)
    out = app_ctx.console

    if project is None:
        show_all_status(app_ctx)
        return

    with cli_errors(out):
        statuses = app_ctx.manager.status(app_ctx.store.resolve(project))

    if not statuses:
        out.print(f"📭 No containers found for project '{project}'")
        out.print(f"💡 Tip: Run 'dockyard start {project}' to create and start containers")
        return

    table = Table(
        title=f"Status for project '{project}'",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Service", style="cyan", no_wrap=True)
    table.add_column("ID", style="dim")
    table.add_column("State")
    table.add_column("Status", style="green")
    table.add_column("Ports", style="yellow")
    for container in statuses:
        emoji = STATE_EMOJI.get(container.state, "❓")
        table.add_row(
            container.service,
            container.id,
            f"{emoji} {container.state}",
            container.status,
            container.ports,
        )
    out.print()
    out.print(table)


def show_all_status(app_ctx: AppContext) -> None:
    out = app_ctx.console
    out.print("[bold]📊 Status for all projects:[/bold]\n")
    try:
        app_ctx.monitor.ensure_ready()
    except EngineError as e:
        out.print(f"[red]❌ Docker status check failed: {e}[/red]", highlight=False)
        out.print("📋 Showing project list without container status:\n")
        for name in app_ctx.store.sorted_names():
            out.print(f"📁 {name}: {app_ctx.store.get(name)}", highlight=False)
        raise typer.Exit(1)

    runner = app_ctx.runner()
    with cli_errors(out):
        runner.show_status(app_ctx.store.sorted_names())


@app.command()
def health(
    ctx: typer.Context,
    project: Annotated[
        Optional[str], typer.Argument(help="Project name (default: all projects)")
    ] = None,
):
    """Check and fix project health issues"""
    app_ctx = get_context(ctx)
    checker = app_ctx.health_checker()
    with cli_errors(app_ctx.console):
        if project is None:
            checker.check_all()
        else:
            checker.check_project(project)


@app.command()
def engine(ctx: typer.Context):
    """Show detailed container engine status"""
    app_ctx = get_context(ctx)
    out = app_ctx.console
    engine_status = app_ctx.monitor.check_status()

    if not engine_status.installed:
        out.print(f"[red]✗ {app_ctx.platforms.common.docker_not_found}[/red]")
        for line in engine_status.install_options:
            out.print(line, markup=False)
        raise typer.Exit(1)
    if not engine_status.daemon_reachable:
        out.print(
            f"[red]✗ Docker daemon is not accessible:[/red] {engine_status.error_detail}",
            highlight=False,
        )
        out.print("Run any project command to get guided recovery steps.")
        raise typer.Exit(1)

    with cli_errors(out):
        details = app_ctx.monitor.describe_engine()
    version = details["version"] or {}
    info = details["info"] or {}

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Server version", str(version.get("Version", "unknown")))
    table.add_row("API version", str(version.get("ApiVersion", "unknown")))
    table.add_row("OS/Arch", f"{version.get('Os', '?')}/{version.get('Arch', '?')}")
    if info:
        table.add_row(
            "Containers",
            f"{info.get('ContainersRunning', 0)} running / "
            f"{info.get('Containers', 0)} total",
        )
        table.add_row("Images", str(info.get("Images", 0)))
        table.add_row("Operating system", str(info.get("OperatingSystem", "unknown")))

    out.print(
        Panel(
            table,
            title=f"[green]✓ {app_ctx.platforms.common.docker_running}[/green]",
            border_style="green",
        )
    )


# ============================================================================
# Interactive management
# ============================================================================


@app.command()
def manage(ctx: typer.Context):
    """Add or remove projects"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        app_ctx.management().run()


@app.command()
def auth(ctx: typer.Context):
    """Set up Docker registry authentication"""
    app_ctx = get_context(ctx)
    with cli_errors(app_ctx.console):
        ok = app_ctx.auth_wizard().run()
    if not ok:
        raise typer.Exit(1)


def main():
    """Main entry point"""
    app()
