#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Registry error classification.

Maps the output of a failed pull/build/up to the registry that rejected it
and the steps that fix it. Pure functions only; the interactive follow-up
lives in auth.py.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import RegistryCategory, RegistryFailure

_FLAGS = re.IGNORECASE

# Evaluated in order, first match wins: registry-specific patterns come
# before the generic ones they overlap with. Each pattern matches within a
# single line of output.
REGISTRY_ERROR_PATTERNS: tuple[tuple[RegistryCategory, re.Pattern[str]], ...] = (
    ("gitlab-auth", re.compile(r"gitlab\.com.*HTTP Basic:?\s*Access denied", _FLAGS)),
    ("github-auth", re.compile(r"ghcr\.io.*(?:unauthorized|\b401\b)", _FLAGS)),
    (
        "dockerhub-auth",
        re.compile(
            r"pull access denied.*repository does not exist or may require"
            r".*docker login",
            _FLAGS,
        ),
    ),
    ("generic-auth", re.compile(r"unauthorized.*authentication required", _FLAGS)),
    ("registry-access", re.compile(r"error from registry.*access denied", _FLAGS)),
)

_REGISTRY_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(registry\.[a-z0-9-]+(?:\.[a-z0-9-]+)+(?::\d+)?)", re.IGNORECASE),
    re.compile(r"\b(ghcr\.io|docker\.io|quay\.io|gcr\.io)\b", re.IGNORECASE),
)

_IMAGE_REF_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"unable to get image '([^']+)'"),
    re.compile(r"pull access denied for ([^\s,]+)"),
    re.compile(r"failed to resolve reference \"([^\"]+)\""),
)

REGISTRY_DOCS: dict[str, str] = {
    "gitlab-auth": "https://docs.gitlab.com/ee/user/packages/container_registry/",
    "github-auth": (
        "https://docs.github.com/en/packages/working-with-a-github-packages-registry/"
        "working-with-the-container-registry"
    ),
    "dockerhub-auth": "https://docs.docker.com/docker-hub/",
}

_ERROR_DETAILS: tuple[tuple[str, str], ...] = (
    ("HTTP Basic: Access denied", "Authentication failed - invalid credentials"),
    (
        "token was either incorrect, expired, or improperly scoped",
        "Token issue - check token validity and permissions",
    ),
    ("password was incorrect", "Password authentication failed"),
)


def classify(raw_output: str) -> Optional[RegistryFailure]:
    """Classify command output; None when no registry pattern matches"""
    for category, pattern in REGISTRY_ERROR_PATTERNS:
        if pattern.search(raw_output):
            host = extract_registry_host(raw_output)
            return RegistryFailure(
                category=category,
                registry_host=host,
                image_ref=extract_image_ref(raw_output),
                suggestions=registry_suggestions(category, host),
            )
    return None


def extract_registry_host(raw_output: str) -> Optional[str]:
    for pattern in _REGISTRY_HOST_PATTERNS:
        match = pattern.search(raw_output)
        if match:
            return match.group(1).lower()

    image = extract_image_ref(raw_output)
    if image:
        first = image.split("/", 1)[0]
        if "/" in image and ("." in first or ":" in first or first == "localhost"):
            return first.lower()
    return None


def extract_image_ref(raw_output: str) -> Optional[str]:
    for pattern in _IMAGE_REF_PATTERNS:
        match = pattern.search(raw_output)
        if match:
            return match.group(1)
    return None


def registry_login_host(registry_host: Optional[str]) -> str:
    """Host to pass to `docker login`; empty string means Docker Hub"""
    if not registry_host:
        return ""
    if "gitlab.com" in registry_host:
        return "registry.gitlab.com"
    if "github.com" in registry_host or "ghcr.io" in registry_host:
        return "ghcr.io"
    if registry_host in ("docker.io", "registry-1.docker.io", "index.docker.io"):
        return ""
    return registry_host


def registry_suggestions(
    category: RegistryCategory, registry_host: Optional[str]
) -> tuple[str, ...]:
    if category == "gitlab-auth":
        login_host = registry_login_host(registry_host) or "registry.gitlab.com"
        return (
            "Create a GitLab Personal Access Token with 'read_registry' scope",
            f"Run: docker login {login_host}",
            "Use your GitLab username and the Personal Access Token as password",
            "GitLab tokens: https://gitlab.com/-/profile/personal_access_tokens",
        )
    if category == "github-auth":
        return (
            "Create a GitHub Personal Access Token with 'read:packages' scope",
            "Run: docker login ghcr.io",
            "Use your GitHub username and the Personal Access Token as password",
            "GitHub tokens: https://github.com/settings/tokens",
        )
    if category == "dockerhub-auth":
        return (
            "Run: docker login",
            "Use your Docker Hub username and password",
            "Or create an Access Token in Docker Hub settings",
        )
    login_host = registry_login_host(registry_host) or "<registry-url>"
    return (
        f"Run: docker login {login_host}",
        "Use appropriate credentials for the registry",
        "Check if the image exists and you have permission to access it",
    )


def error_details(raw_output: str) -> list[str]:
    """Human readable credential symptoms found in the output"""
    return [detail for needle, detail in _ERROR_DETAILS if needle in raw_output]


def documentation_url(category: RegistryCategory) -> Optional[str]:
    return REGISTRY_DOCS.get(category)
