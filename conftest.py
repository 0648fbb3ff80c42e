"""
conftest.py: Configuración global de pytest.
Asegura que el directorio raíz esté en sys.path para imports de datacompare/ y ui/.
"""
import sys
import os

import pytest

# Agregar raíz del proyecto a sys.path para que `import datacompare` funcione en tests
sys.path.insert(0, os.path.dirname(__file__))

from datacompare.models import CsvTable  # noqa: E402


@pytest.fixture
def base_table() -> CsvTable:
    """Tabla esperada: 4 columnas, 3 filas con numéricos, n/a y textos."""
    return CsvTable(
        headers=["Key", "Stream1", "Stream2", "Stream3"],
        rows=[
            ["Attr1", "1.0", "100", "3.9E+03"],
            ["Attr2", "2.0", "n/a", "n/a"],
            ["Attr3", "", "Vapor", "Liquid"],
        ],
    )


@pytest.fixture
def actual_table() -> CsvTable:
    """Tabla real: falta una columna y una fila respecto a base_table."""
    return CsvTable(
        headers=["Key", "Stream1", "Stream2"],
        rows=[
            ["Attr1", "1.0", "101.1"],
            ["Attr4", "n/a", "0"],
        ],
    )
