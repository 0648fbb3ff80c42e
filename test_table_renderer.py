"""
test_table_renderer.py
======================
Tests del renderizado genérico de tablas con prefijo de estado.
"""
from __future__ import annotations

from collections import namedtuple

import pytest

from datacompare.errors import UnknownColumnError
from datacompare.table_renderer import TableRenderer, fail, pass_, report, split_status

Point = namedtuple("Point", ["x", "y"])


@pytest.fixture
def renderer() -> TableRenderer:
    return TableRenderer({
        "X": lambda p: p.x,
        "Y": lambda p: p.y,
    })


class TestTableRenderer:

    def test_desired_columns_order(self, renderer):
        table = renderer.make_table([Point(1, 2), Point(3, 4)], ["y", "x"])
        assert table == [
            ["report:Y", "report:X"],
            [2, 1],
            [4, 3],
        ]

    def test_default_columns(self, renderer):
        assert renderer.headers == ["X", "Y"]
        assert renderer.make_table([Point(1, 2)]) == [["report:X", "report:Y"], [1, 2]]

    def test_no_records(self, renderer):
        assert renderer.make_table([], ["Y"]) == [["report:Y"]]

    def test_unknown_column(self, renderer):
        with pytest.raises(UnknownColumnError, match="Z: No such header. Recognised values: X, Y."):
            renderer.make_table([Point(1, 2)], ["X", "Z"])


class TestStatusPrefixes:

    def test_builders(self):
        assert pass_("ok") == "pass:ok"
        assert fail("1 != 2") == "fail:1 != 2"
        assert report(None) == "report:"

    @pytest.mark.parametrize("cell, expected", [
        ("pass:1 ~= 1", ("pass", "1 ~= 1")),
        ("fail:[a] missing", ("fail", "[a] missing")),
        ("report:", ("report", "")),
        ("plain", (None, "plain")),
        (None, (None, "")),
        (3, (None, "3")),
    ])
    def test_split_status(self, cell, expected):
        assert split_status(cell) == expected
