from __future__ import annotations
import csv
import re
import logging
from io import BytesIO, StringIO
from typing import Any, Dict, List, Sequence
import pandas as pd
from openpyxl import load_workbook
from .utils import value_to_text

logger = logging.getLogger(__name__)
# =========================

# Матрица значений -> сетка текстовых ячеек
# =========================
def grid_from_matrix(matrix: Sequence[Sequence[Any]]) -> List[List[str]]:
    """
    Все ячейки -> текст (trim), None -> "".
    Хвостовые пустые строки и колонки отрезаются; пустые строки внутри листа остаются,
    чтобы не сдвигать строку дат / строку тем.
    """
    rows = [[value_to_text(v) for v in row] for row in matrix]

    while rows and not any(rows[-1]):
        rows.pop()

    width = 0
    for row in rows:
        for j in range(len(row) - 1, -1, -1):
            if row[j]:
                width = max(width, j + 1)
                break

    return [row[:width] + [""] * (width - len(row[:width])) for row in rows]


_PERCENT_DECIMALS_RE = re.compile(r"0\.(0+)%")


def _cell_value(cell) -> Any:
    """
    Значение ячейки так, как его видит пользователь в Excel.
    Проценты хранятся долями (0.85), а показываются как "85%".
    """
    v = cell.value
    fmt = getattr(cell, "number_format", None) or ""
    if "%" in fmt and isinstance(v, (int, float)) and not isinstance(v, bool):
        m = _PERCENT_DECIMALS_RE.search(fmt)
        digits = len(m.group(1)) if m else 0
        return f"{v * 100:.{digits}f}%"
    return v


def _sheet_to_matrix(wb_bytes: bytes) -> Dict[str, List[List[Any]]]:
    # объединённые ячейки не разворачиваем: значение остаётся только в левой верхней
    wb = load_workbook(BytesIO(wb_bytes), read_only=True, data_only=True)
    try:
        return {ws.title: [[_cell_value(c) for c in r] for r in ws.iter_rows()] for ws in wb.worksheets}
    finally:
        wb.close()
# =========================

# CSV: устойчивое чтение из bytes
# =========================
def _decode_sample(data: bytes, enc: str, limit: int = 65536) -> str:
    # Декодирует кусок текста для sniff delimiter
    try:
        return data[:limit].decode(enc)
    except UnicodeDecodeError:
        return data[:limit].decode("utf-8", errors="replace")


def _guess_delimiter(sample_text: str) -> str:
    # ',' (en-US) или ';' (ru/es locales), иногда табы
    try:
        dialect = csv.Sniffer().sniff(sample_text, delimiters=";,\t|")
        if dialect.delimiter:
            return dialect.delimiter
    except csv.Error:
        pass

    # fallback по количеству в первых строках
    lines = [ln for ln in sample_text.splitlines() if ln.strip()][:20]
    if not lines:
        return ","

    scores = {}
    for d in [";", ",", "\t", "|"]:
        cnts = [ln.count(d) for ln in lines]
        scores[d] = sum(cnts) / max(1, len(cnts))

    best = max(scores.items(), key=lambda x: x[1])[0]
    return best if scores.get(best, 0) > 0 else ","


def _read_csv_bytes(data: bytes) -> pd.DataFrame:
    # без header: строка дат и строка тем должны остаться обычными строками матрицы
    last_err: Exception | None = None

    for enc in ["utf-8-sig", "utf-8", "cp1252"]:
        try:
            sample = _decode_sample(data, enc)
            delim = _guess_delimiter(sample)
            return pd.read_csv(
                BytesIO(data),
                header=None,
                sep=delim,
                engine="python",
                encoding=enc,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            )
        except (UnicodeDecodeError, pd.errors.ParserError) as e:
            last_err = e
            continue

    # Декодируем как текст с заменой и читаем
    sample = data.decode("utf-8", errors="replace")
    try:
        return pd.read_csv(
            StringIO(sample),
            header=None,
            sep=_guess_delimiter(sample),
            engine="python",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.ParserError as e:
        raise last_err or e
# =========================

# Main: uploads -> grids
# =========================
def load_grids_from_uploads(uploads) -> List[Dict[str, Any]]:
    """
    Возвращает список листов в формате:
      {
        "source_name": <имя файла>,
        "sheet_name": <лист или 'CSV'>,
        "grid": [[str, ...], ...],
      }
    uploads - объекты с .name и .getvalue() (st.file_uploader).
    """
    tables: List[Dict[str, Any]] = []

    for up in uploads:
        name = up.name
        data = up.getvalue()

        if name.lower().endswith(".csv"):
            df = _read_csv_bytes(data)
            tables.append({"source_name": name, "sheet_name": "CSV", "grid": grid_from_matrix(df.values.tolist())})
            continue

        for sheet, matrix in _sheet_to_matrix(data).items():
            tables.append({"source_name": name, "sheet_name": sheet, "grid": grid_from_matrix(matrix)})

    logger.info("Загружено листов: %d", len(tables))
    return tables
