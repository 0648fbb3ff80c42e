"""
test_report.py
==============
Tests de lectura de ficheros, exportación a Excel y pipeline completo.
Ejecutar con: pytest -v
"""
from __future__ import annotations

import io
import logging

import openpyxl
import pandas as pd
import pytest

from datacompare.csv_comparison import CsvComparison
from datacompare.errors import UnknownColumnError
from datacompare.models import ComparisonConfig, ComparisonResult, validate_config
from datacompare.pipeline import run_comparison, setup_logging
from datacompare.readers import detect_separator, load_csv_table, read_table
from datacompare.report import build_excel, report_to_dataframe, status_frame, summary_rows
from datacompare.tolerance import Tolerance


@pytest.fixture
def comparison_table(base_table, actual_table) -> list[list]:
    return CsvComparison(base_table, actual_table, Tolerance.parse("1%")).do_table()


@pytest.fixture
def base_frame(base_table) -> pd.DataFrame:
    return pd.DataFrame(base_table.rows, columns=base_table.headers)


@pytest.fixture
def series_config() -> ComparisonConfig:
    return ComparisonConfig(tolerance="0.05", mode="timeseries")


SERIES_EXPECTED = (
    "timestamp,value,isgood\n"
    "2004-03-24T00:00:00,1.5,True\n"
    "2004-03-24T00:01:00,2.5,True\n"
).encode()

SERIES_ACTUAL = (
    "timestamp,value,isgood\n"
    "2004-03-24T00:00:00,1.5,True\n"
    "2004-03-24T00:01:00,2.6,True\n"
).encode()


# ===========================================================================
# 1. Tests read_table
# ===========================================================================

class TestReadTable:

    def test_read_xlsx(self, base_frame):
        buf = io.BytesIO()
        base_frame.to_excel(buf, index=False)
        df = read_table(io.BytesIO(buf.getvalue()), "esperado.xlsx")
        assert df.shape == base_frame.shape
        assert list(df.columns) == list(base_frame.columns)
        assert df.iloc[0, 3] == "3.9E+03"

    def test_read_csv_semicolon(self, base_frame):
        content = base_frame.to_csv(index=False, sep=";").encode()
        df = read_table(io.BytesIO(content), "esperado.csv")
        assert df.shape == (3, 4)
        assert df.iloc[1, 2] == "n/a"

    def test_read_csv_comma_keeps_text(self, base_frame):
        content = base_frame.to_csv(index=False, sep=",").encode()
        df = read_table(content, "esperado.csv")
        assert df.iloc[0, 1] == "1.0"
        assert df.iloc[2, 1] == ""

    def test_read_csv_latin1(self):
        content = "Key;Valor\nación;1\n".encode("latin-1")
        df = read_table(content, "datos.csv")
        assert df.iloc[0, 0] == "ación"

    def test_unsupported_extension(self):
        with pytest.raises(ValueError, match="Formato no soportado"):
            read_table(io.BytesIO(b"datos"), "archivo.xlsm")

    def test_corrupt_file(self):
        with pytest.raises(ValueError, match="No se pudo leer"):
            read_table(io.BytesIO(b"esto no es un excel"), "corrupto.xlsx")

    def test_empty_csv(self):
        with pytest.raises(ValueError, match="No se pudo leer"):
            read_table(b"", "vacio.csv")

    @pytest.mark.parametrize("text, expected", [
        ("a;b;c\n1;2;3", ";"),
        ("a,b,c\n1,2,3", ","),
        ("a\tb\n1\t2", "\t"),
        ("a\n1", ","),
        ("", ","),
    ])
    def test_detect_separator(self, text, expected):
        assert detect_separator(text) == expected

    def test_load_csv_table(self, base_frame, base_table):
        content = base_frame.to_csv(index=False, sep=";").encode()
        assert load_csv_table(content, "esperado.csv") == base_table


# ===========================================================================
# 2. Tests DataFrames de informe
# ===========================================================================

class TestReportFrames:

    def test_report_to_dataframe(self, comparison_table):
        df = report_to_dataframe(comparison_table)
        assert list(df.columns)[:2] == ["Cell", "Row No"]
        assert len(df) == 11
        assert df.loc[1, "Value"] == "101.1 != 100"
        assert df.loc[1, "Issue"] == "OutsideToleranceIssue"

    def test_status_frame(self, comparison_table):
        statuses = status_frame(comparison_table)
        assert statuses.loc[1, "Cell"] == "report"
        assert statuses.loc[1, "Value"] == "fail"

    def test_empty_table(self):
        assert report_to_dataframe([]).empty
        assert status_frame([]).empty

    def test_summary_rows(self):
        result = ComparisonResult(
            mode="table", expected_name="a.csv", actual_name="b.csv", failure_count=0, used_tolerance="0.5"
        )
        assert summary_rows(result) == {
            "Mode": "table",
            "Expected": "a.csv",
            "Actual": "b.csv",
            "Failures": 0,
            "Points": "",
            "Tolerance": "0.5",
            "Result": "OK",
        }


# ===========================================================================
# 3. Tests build_excel
# ===========================================================================

class TestBuildExcel:

    def test_returns_bytes(self, comparison_table):
        excel_bytes = build_excel({"Tabla": comparison_table})
        assert isinstance(excel_bytes, bytes)
        assert len(excel_bytes) > 0

    def test_excel_has_sheets(self, comparison_table):
        excel_bytes = build_excel({"Tabla": comparison_table}, {"Failures": 11})
        wb = openpyxl.load_workbook(io.BytesIO(excel_bytes))
        assert wb.sheetnames == ["Resumen", "Tabla", "Leyenda"]

    def test_without_summary(self, comparison_table):
        wb = openpyxl.load_workbook(io.BytesIO(build_excel({"Tabla": comparison_table})))
        assert wb.sheetnames == ["Tabla", "Leyenda"]

    def test_cells_without_prefix_and_filled(self, comparison_table):
        wb = openpyxl.load_workbook(io.BytesIO(build_excel({"Tabla": comparison_table})))
        ws = wb["Tabla"]
        assert ws["A1"].value == "Cell"
        assert ws["A1"].font.bold
        assert ws["A3"].value == "C2"
        assert ws["F3"].value == "101.1 != 100"
        assert ws["F3"].fill.fgColor.rgb.endswith("FFC7CE")
        assert ws["A3"].fill.fill_type is None
        assert ws.freeze_panes == "A2"

    def test_sheet_names_are_sanitized(self, comparison_table):
        excel_bytes = build_excel({"a/b": comparison_table, "A_b": comparison_table})
        wb = openpyxl.load_workbook(io.BytesIO(excel_bytes))
        assert wb.sheetnames == ["a_b", "A_b (2)", "Leyenda"]


# ===========================================================================
# 4. Tests validate_config
# ===========================================================================

class TestValidateConfig:

    def test_valid_config(self):
        validate_config(ComparisonConfig(tolerance="0.1;2%:3", mode="table"))

    def test_invalid_mode(self):
        with pytest.raises(ValueError, match="Modo 'x' no válido"):
            validate_config(ComparisonConfig(mode="x"))

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError, match="Tolerancia inválida 'abc'"):
            validate_config(ComparisonConfig(tolerance="abc"))

    def test_empty_series_column(self):
        config = ComparisonConfig(mode="timeseries", value_column="  ")
        with pytest.raises(ValueError, match="value_column"):
            validate_config(config)


# ===========================================================================
# 5. Test integración pipeline completo
# ===========================================================================

class TestRunComparison:

    def test_table_pipeline(self):
        expected = b"Key;Value\na;100\nb;5\n"
        actual = b"Key;Value\na;101\nb;5\n"
        config = ComparisonConfig(tolerance="0.5", mode="table")
        result = run_comparison(expected, "esperado.csv", actual, "real.csv", config)
        assert result.failure_count == 1
        assert not result.is_ok
        assert result.point_count is None
        assert result.used_tolerance == "0.5"
        assert result.sheet_name == "Tabla"
        assert result.query[0]["Cell"] == "B2"
        assert result.table[1][0] == "report:B2"

    def test_table_pipeline_desired_columns(self):
        config = ComparisonConfig(mode="table", desired_columns=["Cell", "Issue"])
        result = run_comparison(b"A\n1\n", "e.csv", b"A\n2\n", "r.csv", config)
        assert result.table == [["report:Cell", "report:Issue"], ["report:A2", "fail:ValueIssue"]]

    def test_series_pipeline(self, series_config):
        result = run_comparison(
            io.BytesIO(SERIES_EXPECTED), "esperado.csv", io.BytesIO(SERIES_ACTUAL), "real.csv", series_config
        )
        assert result.mode == "timeseries"
        assert result.sheet_name == "Series"
        assert result.failure_count == 1
        assert result.point_count == 2
        assert result.used_tolerance == "0.05 (5.0 %)"
        assert result.query[0]["Value"] == "2.6 != 2.5"
        assert result.query[0]["Delta"] == "0.1"

    def test_series_pipeline_unknown_column(self, series_config):
        series_config.value_column = "valor"
        with pytest.raises(UnknownColumnError, match="valor"):
            run_comparison(SERIES_EXPECTED, "e.csv", SERIES_ACTUAL, "r.csv", series_config)

    def test_pipeline_to_excel(self, series_config):
        result = run_comparison(SERIES_EXPECTED, "e.csv", SERIES_ACTUAL, "r.csv", series_config)
        excel_bytes = build_excel({result.sheet_name: result.table}, summary_rows(result))
        wb = openpyxl.load_workbook(io.BytesIO(excel_bytes))
        assert "Series" in wb.sheetnames
        assert wb["Resumen"]["B8"].value == "FAIL"


# ===========================================================================
# 6. Tests logging
# ===========================================================================

class TestSetupLogging:

    def test_basic_config(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        setup_logging()
        assert calls == [{"level": logging.INFO, "format": "%(levelname)s: %(message)s"}]
