# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.


import pytest

from dockyard_src.interaction import parse_selection


@pytest.mark.parametrize(
    "answer, expected",
    [
        ("1", [0]),
        ("3, 1", [2, 0]),
        ("2-4", [1, 2, 3]),
        ("1,1,2-3,2", [0, 1, 2]),
        (" 4 ,", [3]),
    ],
)
def test_parse_selection(answer, expected):
    assert parse_selection(answer, 4) == expected


@pytest.mark.parametrize("answer", ["0", "5", "3-1", "x", "1-9"])
def test_parse_selection_rejects_invalid(answer):
    with pytest.raises(ValueError):
        parse_selection(answer, 4)
