#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
User interaction: the prompts the recovery and management flows rely on.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt


class Interaction(Protocol):
    """Prompt capability injected into interactive flows"""

    def select_one(self, message: str, options: Sequence[str]) -> str: ...

    def select_many(self, message: str, options: Sequence[str]) -> list[str]: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def read_line(self, message: str) -> str: ...

    def read_secret(self, message: str) -> str: ...


class RichInteraction:
    """Numbered-menu prompts on top of rich.prompt"""

    def __init__(self, console: Console):
        self.console = console

    def _print_menu(self, message: str, options: Sequence[str]) -> None:
        self.console.print(f"\n[bold cyan]?[/bold cyan] [bold]{message}[/bold]")
        for index, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{index:>2}[/cyan]) {option}", highlight=False)

    def select_one(self, message: str, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("select_one needs at least one option")
        self._print_menu(message, options)
        choice = IntPrompt.ask(
            "Choice",
            console=self.console,
            choices=[str(i) for i in range(1, len(options) + 1)],
            show_choices=False,
            default=1,
        )
        return options[choice - 1]

    def select_many(self, message: str, options: Sequence[str]) -> list[str]:
        if not options:
            return []
        self._print_menu(message, options)
        while True:
            answer = Prompt.ask(
                "Numbers separated by commas, 'all', or empty for none",
                console=self.console,
                default="",
                show_default=False,
            ).strip()
            if not answer:
                return []
            if answer.lower() == "all":
                return list(options)
            try:
                indexes = parse_selection(answer, len(options))
            except ValueError as e:
                self.console.print(f"[red]{e}[/red]")
                continue
            return [options[i] for i in indexes]

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, console=self.console, default=default)

    def read_line(self, message: str) -> str:
        return Prompt.ask(message, console=self.console).strip()

    def read_secret(self, message: str) -> str:
        return Prompt.ask(message, console=self.console, password=True)


def parse_selection(answer: str, count: int) -> list[int]:
    """Parse '1, 3-4' into zero-based indexes, keeping order and dropping repeats"""
    indexes: list[int] = []
    for token in answer.replace(" ", "").split(","):
        if not token:
            continue
        if "-" in token:
            start_s, end_s = token.split("-", 1)
            start, end = int(start_s), int(end_s)
            if start > end:
                raise ValueError(f"Invalid range: {token}")
            numbers = range(start, end + 1)
        else:
            numbers = range(int(token), int(token) + 1)
        for number in numbers:
            if not 1 <= number <= count:
                raise ValueError(f"Choice out of range: {number}")
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes
