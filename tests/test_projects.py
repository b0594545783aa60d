# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.


import json
from pathlib import Path

import pytest

from dockyard_src.errors import ComposeFileNotFoundError, ConfigError, ProjectNotFoundError
from dockyard_src.projects import (
    ProjectStore,
    docker_files_info,
    find_all_compose_files,
    find_compose_file,
    has_docker_files,
    resolve_home_dir,
)


def test_missing_file_is_empty_store(tmp_path):
    store = ProjectStore(tmp_path / "projects.json").load()

    assert len(store) == 0
    assert not store.exists


def test_save_and_load(tmp_path):
    path = tmp_path / "projects.json"
    store = ProjectStore(path)
    store.add("web", "~/src/web")
    store.add("api", "/srv/api")
    store.save()

    loaded = ProjectStore(path).load()

    assert loaded.sorted_names() == ["api", "web"]
    assert loaded.get("web") == "~/src/web"
    assert json.loads(path.read_text()) == {"api": "/srv/api", "web": "~/src/web"}


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"web": 3}'])
def test_invalid_file(tmp_path, content):
    path = tmp_path / "projects.json"
    path.write_text(content)

    with pytest.raises(ConfigError):
        ProjectStore(path).load()


def test_resolve_expands_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    store = ProjectStore(tmp_path / "projects.json")
    store.add("web", "~/src/web")

    assert store.resolve("web") == tmp_path / "src" / "web"
    assert resolve_home_dir("/srv/api") == Path("/srv/api")


def test_unknown_project(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")

    with pytest.raises(ProjectNotFoundError, match="Unknown project: ghost"):
        store.resolve("ghost")
    with pytest.raises(ProjectNotFoundError):
        store.remove("ghost")


def test_empty_name_rejected(tmp_path):
    with pytest.raises(ValueError):
        ProjectStore(tmp_path / "projects.json").add("  ", "/srv")


def test_compose_file_preference(tmp_path):
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")
    (tmp_path / "compose.yml").write_text("services: {}\n")

    assert find_compose_file(tmp_path) == tmp_path / "compose.yml"


def test_no_compose_file(tmp_path):
    with pytest.raises(ComposeFileNotFoundError):
        find_compose_file(tmp_path)


def test_docker_files_discovery(tmp_path):
    assert not has_docker_files(tmp_path)
    assert docker_files_info(tmp_path) == "No Docker files found"

    (tmp_path / "Dockerfile").write_text("FROM alpine\n")
    assert has_docker_files(tmp_path)

    (tmp_path / "docker-compose.yaml").write_text("services: {}\n")
    (tmp_path / "docker-compose.override.yml").write_text("services: {}\n")
    assert find_all_compose_files(tmp_path) == [
        tmp_path / "docker-compose.yaml",
        tmp_path / "docker-compose.override.yml",
    ]
    assert docker_files_info(tmp_path) == (
        "docker-compose.yaml, docker-compose.override.yml, Dockerfile"
    )
