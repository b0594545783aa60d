#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Configuration and value models for dockyard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Type

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

PlatformName = Literal["darwin", "windows", "linux"]
RegistryCategory = Literal[
    "gitlab-auth",
    "github-auth",
    "dockerhub-auth",
    "generic-auth",
    "registry-access",
]

# ============================================================================
# Platform document (platforms.yaml)
# ============================================================================


class RuntimeInstructions(BaseModel):
    """Start instructions for one container runtime"""

    manual_start: list[str] = Field(default_factory=list)
    auto_start: list[str] = Field(default_factory=list)
    commands: list[str] = Field(default_factory=list)


class StartupInstructions(BaseModel):
    """Generic daemon startup instructions"""

    manual: list[str] = Field(default_factory=list)
    auto: list[str] = Field(default_factory=list)


class PlatformProfile(BaseModel):
    """Per-OS install, troubleshooting and startup texts"""

    model_config = {"frozen": True}

    install_options: list[str] = Field(default_factory=list)
    troubleshooting: list[str] = Field(default_factory=list)
    runtimes: dict[str, RuntimeInstructions] = Field(default_factory=dict)
    startup: StartupInstructions = Field(default_factory=StartupInstructions)


class CommonMessages(BaseModel):
    """One-line status messages shown during checks and recovery"""

    docker_not_found: str
    docker_running: str = "Container runtime is running"
    runtime_start_attempt: str
    runtime_waiting: str
    runtime_start_failed: str = Field(
        description="Format string, receives the timeout in seconds"
    )
    runtime_now_running: str = "Container runtime is now running!"
    orbstack_start_sent: str
    orbstack_note: str
    colima_start_sent: str
    colima_note: str
    docker_desktop_sent: str
    container_runtime_sent: str


class UIOptions(BaseModel):
    """Prompt messages and option labels for the recovery flow"""

    runtime_options_message: str
    runtime_options: list[str]
    startup_options_message: str
    startup_options: list[str]

    @field_validator("runtime_options")
    @classmethod
    def validate_runtime_options(cls, v: list[str]) -> list[str]:
        """Recovery offers exactly: auto start, wait and retry, manual"""
        if len(v) != 3:
            raise ValueError("runtime_options must list exactly 3 choices")
        return v

    @field_validator("startup_options")
    @classmethod
    def validate_startup_options(cls, v: list[str]) -> list[str]:
        """Startup offers at least: manual commands, auto-start setup"""
        if len(v) < 2:
            raise ValueError("startup_options must list at least 2 choices")
        return v


class ErrorMessages(BaseModel):
    """Terminal error texts"""

    install_runtime: str
    start_runtime_manually: str
    start_orbstack: str
    start_colima: str
    manual_startup: str
    auto_start_setup: str
    docker_desktop_manual: str
    docker_daemon_manual: str
    recovery_exhausted: str
    recovery_cancelled: str = "Waiting for the container runtime was cancelled"


class PlatformsConfig(BaseModel):
    """Root of platforms.yaml"""

    model_config = {"frozen": True}

    common: CommonMessages
    platforms: dict[str, PlatformProfile]
    ui_options: UIOptions
    error_messages: ErrorMessages

    @model_validator(mode="after")
    def check_linux_fallback(self) -> "PlatformsConfig":
        """Unknown platforms resolve to linux, so it must exist"""
        if "linux" not in self.platforms:
            raise ValueError("platforms.linux is required as the fallback profile")
        return self


# ============================================================================
# Settings
# ============================================================================


class Settings(BaseSettings):
    """Runtime settings (env vars prefixed with DOCKYARD_)"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCKYARD_",
        case_sensitive=False,
        extra="ignore",
    )

    projects_file: Path = Field(
        default=Path("projects.json"), description="JSON map of project name to path"
    )
    platforms_file: Optional[Path] = Field(
        default=None,
        description="Override for the packaged platforms.yaml",
    )
    engine_command: str = Field(default="docker", description="Engine executable")
    ping_timeout: float = Field(default=5.0, gt=0, description="Daemon ping timeout")
    retry_interval: float = Field(
        default=5.0, ge=0, description="Seconds between daemon probes"
    )
    max_retries: int = Field(default=12, ge=1, description="Daemon probe attempts")
    runtime_start_timeout: int = Field(
        default=60, ge=1, description="Timeout shown to the user after retries"
    )
    interactive: bool = Field(default=True, description="Allow prompts")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources priority.
        Priority: CLI (init) > env vars > .env file > file secrets > defaults
        """
        return init_settings, env_settings, dotenv_settings, file_secret_settings


# ============================================================================
# Value objects
# ============================================================================


@dataclass(frozen=True)
class EngineStatus:
    installed: bool
    daemon_reachable: bool
    error_detail: Optional[str] = None
    install_options: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.installed and self.daemon_reachable


@dataclass(frozen=True)
class RegistryFailure:
    category: RegistryCategory
    registry_host: Optional[str]
    image_ref: Optional[str]
    suggestions: tuple[str, ...]


@dataclass
class RetryState:
    max_attempts: int
    interval_seconds: float
    attempt: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr joined, for pattern matching"""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@dataclass
class ContainerStatus:
    name: str
    service: str
    id: str
    state: str
    status: str
    image: str
    ports: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_compose_json(cls, data: dict[str, Any]) -> "ContainerStatus":
        """Build from one entry of `docker compose ps --format json`"""
        return cls(
            name=str(data.get("Name", "")).lstrip("/"),
            service=str(data.get("Service") or "unknown"),
            id=str(data.get("ID", ""))[:12],
            state=str(data.get("State", "")),
            status=str(data.get("Status", "")),
            image=str(data.get("Image", "")),
            ports=format_publishers(data.get("Publishers") or []),
        )


def format_publishers(publishers: list[dict[str, Any]]) -> str:
    """Render compose publishers as 'published:target' or 'target'"""
    parts: list[str] = []
    seen = set[str]()
    for pub in publishers:
        target = pub.get("TargetPort")
        if not target:
            continue
        published = pub.get("PublishedPort") or 0
        text = f"{published}:{target}" if published else f"{target}"
        # IPv4 and IPv6 bindings repeat the same mapping
        if text not in seen:
            seen.add(text)
            parts.append(text)
    return ", ".join(parts)
