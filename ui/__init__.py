"""UI: componentes de presentación Streamlit. Solo renderiza, no calcula."""
from ui.styling import (
    render_all_results,
    render_summary,
    render_result_table,
    render_failures,
    render_column_selector,
)

__all__ = [
    "render_all_results",
    "render_summary",
    "render_result_table",
    "render_failures",
    "render_column_selector",
]
