from __future__ import annotations
from dataclasses import dataclass, field
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .descriptive import DescriptiveTable

@dataclass
class ReportArtifacts:
    table_csvs: List[Path] = field(default_factory=list)
    html_path: Optional[Path] = None
    excel_path: Optional[Path] = None
    word_path: Optional[Path] = None
    regression_csv: Optional[Path] = None

_CSS = """
<style>
body { font-family: "Times New Roman", Times, serif; max-width: 900px; margin: 40px auto; line-height: 1.6; }
h2 { font-size: 18px; margin-top: 40px; }
table.academic-table { border-collapse: collapse; width: 100%; font-size: 12px; margin: 20px 0 10px 0; }
table.academic-table caption { text-align: left; font-weight: bold; caption-side: top; padding-bottom: 8px; }
table.academic-table thead tr { border-top: 2px solid black; border-bottom: 1px solid black; }
table.academic-table th, table.academic-table td { padding: 6px 12px; text-align: left; }
table.academic-table tbody tr:last-child { border-bottom: 2px solid black; }
.table-note { font-size: 11px; }
hr { margin: 30px 0; border: none; border-top: 1px solid #ccc; }
</style>
"""

def export_table_csvs(tables: List[DescriptiveTable], out_dir: Path) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for t in tables:
        p = out_dir / f"{t.name}.csv"
        t.frame.to_csv(p, index=False)
        paths.append(p)
    return paths

def _html_table(t: DescriptiveTable, number: int) -> str:
    body = t.frame.to_html(index=False, classes="academic-table", border=0, escape=True)
    caption = f"<caption>Table {number}. {escape(t.title)}</caption>"
    body = body.replace(">\n", f">\n{caption}\n", 1)
    note = f'<p class="table-note"><em>Note:</em> {escape(t.note)}</p>' if t.note else ""
    return f"<h2>Table {number}</h2>\n{body}\n{note}\n"

def export_html(
    tables: List[DescriptiveTable],
    out_path: Path,
    *,
    title: str = "Tables for Methods Section",
    subtitle: str = "",
    regression: Optional[pd.DataFrame] = None,
) -> Path:
    """Single HTML document with one captioned, annotated table per section."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    parts = [
        '<!DOCTYPE html>\n<html>\n<head>\n<meta charset="UTF-8">\n',
        f"<title>{escape(title)}</title>\n{_CSS}</head>\n<body>\n",
        f"<h1>{escape(title)}</h1>\n",
    ]
    if subtitle:
        parts.append(f"<p>{escape(subtitle)}</p>\n")
    parts.append("<hr>\n".join(_html_table(t, i) for i, t in enumerate(tables, start=1)))
    if regression is not None and not regression.empty:
        reg = DescriptiveTable(
            "regression", "Ordered Logit Models of Conflict Intensity", regression,
            "Dyad-clustered standard errors in parentheses. *** p<0.001, ** p<0.01, * p<0.05, † p<0.10.",
        )
        parts.append("<hr>\n" + _html_table(reg, len(tables) + 1))
    parts.append("</body>\n</html>\n")
    out_path.write_text("".join(parts), encoding="utf-8")
    return out_path

def export_excel(results: Dict[str, pd.DataFrame], out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for name, df in results.items():
            safe = name[:31]
            df.to_excel(writer, sheet_name=safe, index=False)
    return out_path

def export_word(summary: Dict[str, Any], out_path: Path, tables: Optional[List[DescriptiveTable]] = None) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    from docx import Document

    doc = Document()
    doc.add_heading("Trade Vulnerability and Conflict: Run Summary", level=1)

    for section, payload in summary.items():
        doc.add_heading(str(section), level=2)
        if isinstance(payload, dict):
            for k, v in payload.items():
                doc.add_paragraph(f"{k}: {v}")
        else:
            doc.add_paragraph(str(payload))

    for i, t in enumerate(tables or [], start=1):
        doc.add_heading(f"Table {i}. {t.title}", level=2)
        grid = doc.add_table(rows=1, cols=len(t.frame.columns))
        for j, c in enumerate(t.frame.columns):
            grid.rows[0].cells[j].text = str(c)
        for _, row in t.frame.iterrows():
            cells = grid.add_row().cells
            for j, v in enumerate(row):
                cells[j].text = "" if pd.isna(v) else str(v)
        if t.note:
            doc.add_paragraph(f"Note: {t.note}")

    doc.save(out_path)
    return out_path
