from __future__ import annotations
import numpy as np
import pandas as pd
from io import BytesIO
from typing import Dict
from .models import AnalysisSnapshot

SHEET_AVERAGES = "Средние"
SHEET_RISK = "Группа риска"
SHEET_CATEGORIES = "Категории L-ML-NL"
SHEET_GROUP = "Динамика группы"
SHEET_ACTIVITIES = "Рейтинг активностей"
SHEET_BEST = "Лучший студент"


def _series_frame(points, value_col: str) -> pd.DataFrame:
    return pd.DataFrame({
        "Дата": [p.date for p in points],
        value_col: [np.nan if p.grade is None else p.grade for p in points],
    })


def snapshot_to_frames(snapshot: AnalysisSnapshot) -> Dict[str, pd.DataFrame]:
    """Таблицы для отображения и выгрузки; снимок не меняется."""
    averages = pd.DataFrame([
        {
            "Студент": name,
            "Средний (с прогнозом)": float(a.current_average),
            "Не сдано": a.missing_activities,
            "Темы с низкими оценками": ", ".join(a.low_grade_topics),
        }
        for name, a in snapshot.student_averages.items()
    ], columns=["Студент", "Средний (с прогнозом)", "Не сдано", "Темы с низкими оценками"])

    risk = pd.DataFrame([
        {
            "Студент": r.name,
            "Прогноз среднего": float(r.projected_average),
            "Не сдано": r.missing,
            "Несданные работы": "; ".join(r.details),
        }
        for r in snapshot.students_at_risk
    ], columns=["Студент", "Прогноз среднего", "Не сдано", "Несданные работы"])

    def _ranking(items, label: str) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "Тема": a.topic,
                "Средний": float(a.average),
                label: len(a.students),
            }
            for a in items
        ], columns=["Тема", "Средний", label])

    categories = pd.DataFrame(
        [{"Категория": c.name, "Количество": c.value} for c in snapshot.category_counts],
        columns=["Категория", "Количество"],
    )

    return {
        "averages": averages,
        "at_risk": risk,
        "lowest": _ranking(snapshot.lowest_activities, "Студентов с низкой оценкой"),
        "highest": _ranking(snapshot.highest_activities, "Студентов с высокой оценкой"),
        "categories": categories,
        "best_series": _series_frame(snapshot.best_student_series, "Оценка"),
        "group_series": _series_frame(snapshot.group_series, "Средний группы"),
    }


def export_to_excel_bytes(snapshot: AnalysisSnapshot) -> bytes:
    frames = snapshot_to_frames(snapshot)
    bio = BytesIO()

    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        frames["averages"].to_excel(writer, index=False, sheet_name=SHEET_AVERAGES)
        frames["at_risk"].to_excel(writer, index=False, sheet_name=SHEET_RISK)
        frames["categories"].to_excel(writer, index=False, sheet_name=SHEET_CATEGORIES)
        frames["group_series"].to_excel(writer, index=False, sheet_name=SHEET_GROUP)

        wb = writer.book

        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})
        fmt_text = wb.add_format({"border": 1, "valign": "top"})
        fmt_num = wb.add_format({"border": 1, "valign": "top", "num_format": "0.00"})
        fmt_title = wb.add_format({"bold": True, "bg_color": "#E8F0FE", "border": 1, "valign": "vcenter"})
        fmt_low = wb.add_format({"border": 1, "valign": "top", "bg_color": "#FCE8E6"})
        fmt_high = wb.add_format({"border": 1, "valign": "top", "bg_color": "#E6F4EA"})

        def format_df_sheet(sheet_name: str, df: pd.DataFrame, default_width: int = 22, max_width: int = 60):
            ws = writer.sheets.get(sheet_name)
            if ws is None:
                return
            ws.freeze_panes(1, 0)
            ws.autofilter(0, 0, max(1, len(df)), max(0, len(df.columns) - 1))
            for col, name in enumerate(df.columns):
                ws.write(0, col, name, fmt_header)
                w = max(10, min(max_width, int(len(str(name)) * 1.2) + 10))
                ws.set_column(col, col, max(default_width, w))

        format_df_sheet(SHEET_AVERAGES, frames["averages"], default_width=22, max_width=48)
        format_df_sheet(SHEET_RISK, frames["at_risk"], default_width=22, max_width=60)
        format_df_sheet(SHEET_CATEGORIES, frames["categories"], default_width=20, max_width=30)
        format_df_sheet(SHEET_GROUP, frames["group_series"], default_width=16, max_width=30)

        # слабые/сильные темы: строка темы + свёрнутые строки студентов
        ws = wb.add_worksheet(SHEET_ACTIVITIES)
        writer.sheets[SHEET_ACTIVITIES] = ws

        cols = ["Раздел", "Тема", "Средний", "Студент", "Оценка"]
        for c, n in enumerate(cols):
            ws.write(0, c, n, fmt_header)
        ws.freeze_panes(1, 0)
        ws.set_column(0, 0, 18)
        ws.set_column(1, 1, 40)
        ws.set_column(2, 2, 12)
        ws.set_column(3, 3, 32)
        ws.set_column(4, 4, 12)

        r = 1
        for section, items, fmt_row in [
            ("Самые низкие", snapshot.lowest_activities, fmt_low),
            ("Самые высокие", snapshot.highest_activities, fmt_high),
        ]:
            for a in items:
                ws.write(r, 0, section, fmt_title)
                ws.write_string(r, 1, a.topic, fmt_title)
                ws.write_number(r, 2, float(a.average), fmt_num)
                ws.write(r, 3, f"студентов: {len(a.students)}", fmt_title)
                ws.write(r, 4, "", fmt_title)
                ws.set_row(r, None, None, {"level": 0, "collapsed": True})
                r += 1

                for s in a.students:
                    ws.write(r, 0, "", fmt_text)
                    ws.write(r, 1, "", fmt_text)
                    ws.write(r, 2, "", fmt_text)
                    ws.write_string(r, 3, s.student_name, fmt_row)
                    ws.write_string(r, 4, s.grade, fmt_row)
                    ws.set_row(r, None, None, {"level": 1, "hidden": True})
                    r += 1

        ws.autofilter(0, 0, max(1, r - 1), len(cols) - 1)

        if snapshot.best_student_name:
            best = frames["best_series"].copy()
            best.insert(0, "Студент", snapshot.best_student_name)
            best.to_excel(writer, index=False, sheet_name=SHEET_BEST)
            format_df_sheet(SHEET_BEST, best, default_width=16, max_width=40)

    return bio.getvalue()
