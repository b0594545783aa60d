#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Interactive registry authentication: the follow-up to a classified registry
failure, and the standalone `dockyard auth` wizard.
"""

from __future__ import annotations

import json
import logging
import webbrowser
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel

from .interaction import Interaction
from .launcher import ProcessLauncher
from .models import CommandResult, RegistryFailure, Settings
from .registry import documentation_url, error_details, registry_login_host

logger = logging.getLogger(__name__)

DOCKER_CONFIG_PATH = Path.home() / ".docker" / "config.json"

GITLAB_HOST = "registry.gitlab.com"
GITHUB_HOST = "ghcr.io"
DOCKERHUB_HOST = ""  # `docker login` without a host targets Docker Hub

GUIDES: dict[str, tuple[str, list[str]]] = {
    "gitlab-auth": (
        "🦊 GitLab Container Registry Authentication",
        [
            "1. Create a Personal Access Token:",
            "   • Go to: https://gitlab.com/-/profile/personal_access_tokens",
            "   • Click 'Add new token'",
            "   • Name: 'Docker Registry Access'",
            "   • Scopes: read_registry (required)",
            "   • Click 'Create personal access token'",
            "   • Save the token, you won't see it again!",
            "",
            "2. Login to GitLab Registry:",
            "   docker login registry.gitlab.com",
            "   Username: <your-gitlab-username>",
            "   Password: <your-personal-access-token>",
            "",
            "3. Verify access:",
            "   docker pull <your-image-name>",
        ],
    ),
    "github-auth": (
        "🐙 GitHub Container Registry Authentication",
        [
            "1. Create a Personal Access Token:",
            "   • Go to: https://github.com/settings/tokens",
            "   • Click 'Generate new token (classic)'",
            "   • Name: 'Docker Registry Access'",
            "   • Scopes: read:packages (required)",
            "   • Click 'Generate token' and copy it immediately",
            "",
            "2. Login to GitHub Registry:",
            "   docker login ghcr.io",
            "   Username: <your-github-username>",
            "   Password: <your-personal-access-token>",
        ],
    ),
    "dockerhub-auth": (
        "🐳 Docker Hub Authentication",
        [
            "1. Login to Docker Hub:",
            "   docker login",
            "   Username: <your-dockerhub-username>",
            "   Password: <your-dockerhub-password-or-token>",
            "",
            "2. For better security, use Access Tokens:",
            "   • Go to: https://hub.docker.com/settings/security",
            "   • Click 'New Access Token'",
            "   • Use the token as your password",
        ],
    ),
}

ASSIST_LOGIN = "Help me login to the registry"
ASSIST_GUIDE = "Show detailed authentication guide"
ASSIST_SKIP = "Skip this project for now"
ASSIST_DOCS = "Open registry documentation"


def registry_display_name(host: str) -> str:
    if host == GITLAB_HOST:
        return "GitLab Container Registry"
    if host == GITHUB_HOST:
        return "GitHub Container Registry"
    if host == DOCKERHUB_HOST:
        return "Docker Hub"
    return host


def generic_guide(host: str) -> list[str]:
    host = host or "<registry-url>"
    return [
        "1. Login to the registry:",
        f"   docker login {host}",
        "   Username: <your-username>",
        "   Password: <your-password-or-token>",
        "",
        "2. Check with your registry provider for:",
        "   • Correct authentication method",
        "   • Required permissions/scopes",
        "   • Token creation process",
    ]


def configured_registries(config_path: Path = DOCKER_CONFIG_PATH) -> list[str]:
    """Registries with stored credentials in the docker CLI config"""
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Cannot read %s: %s", config_path, e)
        return []

    hosts = set[str]()
    for key in ("auths", "credHelpers"):
        section = data.get(key) or {}
        if isinstance(section, dict):
            hosts.update(section)
    return sorted(hosts)


class RegistryLogin:
    """Prompts for credentials and runs `docker login --password-stdin`"""

    def __init__(
        self,
        interaction: Interaction,
        launcher: ProcessLauncher,
        settings: Settings,
        console: Optional[Console] = None,
    ):
        self.interaction = interaction
        self.launcher = launcher
        self.settings = settings
        self.console = console or Console()

    def docker_login(self, host: str, username: str, secret: str) -> CommandResult:
        args = ["login"]
        if host:
            args.append(host)
        args.extend(["-u", username, "--password-stdin"])
        return self.launcher.run_command(
            self.settings.engine_command, args, input_text=secret
        )

    def login(self, host: str) -> bool:
        self.console.print(f"\n[bold]🔑 Logging in to {registry_display_name(host)}[/bold]")
        username = self.interaction.read_line("Username")
        secret = self.interaction.read_secret("Password/Token")
        if not username or not secret:
            self.console.print("[yellow]Username and password/token are required[/yellow]")
            return False

        self.console.print("\n🔐 Authenticating...")
        result = self.docker_login(host, username, secret)
        if not result.ok:
            self.console.print(
                f"[red]✗ Login failed:[/red] {result.output.strip()}", highlight=False
            )
            return False

        self.console.print(
            f"[green]✓ Successfully authenticated with {registry_display_name(host)}![/green]"
        )
        return True


class RegistryAssistant:
    """Guides the user after a compose command failed on registry auth"""

    def __init__(self, login: RegistryLogin, console: Optional[Console] = None):
        self.login = login
        self.console = console or Console()

    @property
    def interactive(self) -> bool:
        return self.login.settings.interactive

    def handle(self, failure: RegistryFailure, raw_output: str) -> str:
        """Show the failure and offer fixes; returns the message for the error"""
        self.show_failure(failure, raw_output)
        if not self.interactive:
            return "Registry authentication required"

        action = self.login.interaction.select_one(
            "What would you like to do?",
            [ASSIST_LOGIN, ASSIST_GUIDE, ASSIST_SKIP, ASSIST_DOCS],
        )
        if action == ASSIST_LOGIN:
            host = registry_login_host(failure.registry_host)
            if self.login.login(host):
                return "Logged in to the registry; run the command again"
            return "docker login failed"
        if action == ASSIST_GUIDE:
            self.show_guide(failure)
            return "Please follow the authentication steps above"
        if action == ASSIST_DOCS:
            self.open_docs(failure)
            return "Please follow the documentation and authenticate"

        self.console.print(
            "⏭️  Skipping this project. You can try again after authentication."
        )
        return "Registry authentication required - skipped"

    def show_failure(self, failure: RegistryFailure, raw_output: str) -> None:
        self.console.print()
        self.console.print("[bold red]🔐 Docker Registry Authentication Error Detected![/bold red]")
        self.console.print(f"📦 Image: {failure.image_ref or 'unknown'}", highlight=False)
        self.console.print(f"🌐 Registry: {failure.registry_host or 'unknown'}", highlight=False)

        details = error_details(raw_output)
        if details:
            self.console.print("\n📋 Error Details:")
            for detail in details:
                self.console.print(f"   • {detail}")

        self.console.print("\n💡 How to fix this:")
        for index, suggestion in enumerate(failure.suggestions, start=1):
            self.console.print(f"   {index}. {suggestion}", markup=False, highlight=False)
        self.console.print()

    def show_guide(self, failure: RegistryFailure) -> None:
        title, lines = GUIDES.get(
            failure.category,
            (
                f"🔐 Registry Authentication for {failure.registry_host or 'your registry'}",
                generic_guide(registry_login_host(failure.registry_host)),
            ),
        )
        self.console.print(
            Panel("\n".join(lines), title=f"[bold]{title}[/bold]", border_style="cyan")
        )

    def open_docs(self, failure: RegistryFailure) -> None:
        url = documentation_url(failure.category)
        if url is None:
            self.console.print(
                "🌐 Please check your registry provider's documentation "
                "for authentication instructions."
            )
            return

        self.console.print(f"🌐 Opening documentation: {url}")
        if not webbrowser.open(url):
            self.console.print(f"💻 Please manually open: {url}")


class AuthWizard:
    """`dockyard auth`: pick a registry and log in"""

    GITLAB = "GitLab Container Registry (registry.gitlab.com)"
    GITHUB = "GitHub Container Registry (ghcr.io)"
    DOCKERHUB = "Docker Hub (docker.io)"
    CUSTOM = "Custom Registry"
    STATUS = "Check current authentication status"

    def __init__(
        self,
        login: RegistryLogin,
        docker_config_path: Path = DOCKER_CONFIG_PATH,
        console: Optional[Console] = None,
    ):
        self.login = login
        self.interaction = login.interaction
        self.docker_config_path = docker_config_path
        self.console = console or Console()

    def run(self) -> bool:
        """Returns True when a login succeeded or the status was shown"""
        self.console.print(
            Panel("🔐 Docker Registry Authentication Wizard", border_style="cyan")
        )
        choice = self.interaction.select_one(
            "Which registry do you want to authenticate with?",
            [self.GITLAB, self.GITHUB, self.DOCKERHUB, self.CUSTOM, self.STATUS],
        )
        if choice == self.GITLAB:
            return self._token_registry("gitlab-auth", GITLAB_HOST, "GitLab")
        if choice == self.GITHUB:
            return self._token_registry("github-auth", GITHUB_HOST, "GitHub")
        if choice == self.DOCKERHUB:
            return self._dockerhub()
        if choice == self.CUSTOM:
            host = self.interaction.read_line(
                "Enter the registry URL (e.g., my-registry.com)"
            )
            if not host:
                self.console.print("[yellow]No registry given[/yellow]")
                return False
            return self.login.login(host)
        self.show_status()
        return True

    def _token_registry(self, category: str, host: str, provider: str) -> bool:
        title, lines = GUIDES[category]
        self.console.print(
            Panel("\n".join(lines), title=f"[bold]{title}[/bold]", border_style="cyan")
        )
        answer = self.interaction.select_one(
            f"Have you created a {provider} Personal Access Token?",
            ["Yes, I have a token", "No, I'll create one first", "Cancel"],
        )
        if answer == "Yes, I have a token":
            return self.login.login(host)
        if answer == "No, I'll create one first":
            if self.interaction.confirm("Token created. Ready to login?", default=True):
                return self.login.login(host)
        return False

    def _dockerhub(self) -> bool:
        self.console.print(
            "Docker Hub supports both password and access token authentication.\n"
            "Access tokens are recommended for better security."
        )
        method = self.interaction.select_one(
            "What authentication method do you prefer?",
            ["Username & Password", "Username & Access Token", "Cancel"],
        )
        if method == "Cancel":
            return False
        if method == "Username & Access Token":
            self.console.print(
                "\n📖 Create one at https://hub.docker.com/settings/security "
                "→ 'New Access Token'\n"
            )
        return self.login.login(DOCKERHUB_HOST)

    def show_status(self) -> None:
        configured = configured_registries(self.docker_config_path)
        self.console.print("\n🔍 Configured registries:")
        if not configured:
            self.console.print("[yellow]   No stored registry credentials[/yellow]")
        for host in configured:
            self.console.print(f"[green]   ✓ {host}[/green]", highlight=False)

        for host in (GITLAB_HOST, GITHUB_HOST):
            if host not in configured:
                self.console.print(f"[dim]   ✗ Not configured: {host}[/dim]")
        self.console.print(
            "\n💡 Tip: Use 'dockyard auth' to set up authentication for private registries."
        )
