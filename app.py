from __future__ import annotations
import os
import logging
import hashlib
import streamlit as st
import pandas as pd
from grades.ingest import load_grids_from_uploads
from grades.pipeline import analyze_sheet_positions, load_sheet
from grades.errors import FormatError, RangeError
from grades.analysis import build_feedback_request
from grades.feedback import generate_feedback
from grades.students import find_student, pending_activities, student_progress, quantitative_averages
from grades.export import snapshot_to_frames, export_to_excel_bytes
from grades.utils import load_rules

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("grades.app")

RULES = load_rules()
st.set_page_config(page_title="Успеваемость студентов", layout="wide")
st.title("Анализ успеваемости по листу оценок")
# =========================

# Helpers
# =========================
def _safe_key_prefix(src_key: str) -> str:
    # MD5 от имени файла/листа: безопасный ключ виджета для кириллицы и спецсимволов
    return hashlib.md5(src_key.encode("utf-8")).hexdigest()


def _unique(seq):
    seen = set()
    out = []
    for x in seq:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


for k in ["analysis", "analysis_key", "feedback"]:
    st.session_state.setdefault(k, None)
# =========================

# Uploads
# =========================
uploads = st.file_uploader(
    "Загрузите листы оценок (XLSX/CSV, можно несколько)",
    type=["xlsx", "csv"],
    accept_multiple_files=True,
)

# Параметры анализа
st.subheader("Параметры анализа")
defaults = RULES["analysis"]
c1, c2, c3, c4, c5 = st.columns(5)
with c1:
    missing_fallback = st.number_input("Балл за несданную работу", min_value=0.0, max_value=9.0,
                                       value=float(defaults["missing_fallback"]), step=0.5)
with c2:
    risk_threshold = st.number_input("Порог группы риска (<)", min_value=0.0, max_value=9.0,
                                     value=float(defaults["risk_threshold"]), step=0.5)
with c3:
    low_grade_below = st.number_input("Низкая оценка (<)", min_value=0.0, max_value=9.0,
                                      value=float(defaults["low_grade_below"]), step=0.5)
with c4:
    high_grade_from = st.number_input("Высокая оценка (>=)", min_value=0.0, max_value=10.0,
                                      value=float(defaults["high_grade_from"]), step=0.5)
with c5:
    top_n = st.number_input("Тем в рейтинге", min_value=1, max_value=50, value=int(defaults["top_n"]))
params = {
    "missing_fallback": float(missing_fallback),
    "risk_threshold": float(risk_threshold),
    "low_grade_below": float(low_grade_below),
    "high_grade_from": float(high_grade_from),
    "top_n": int(top_n),
}

if not uploads:
    st.warning("Загрузите таблицы.")
    st.stop()

tables = []
bad_tables = []
for up in uploads:
    try:
        tables.extend(load_grids_from_uploads([up]))
    except Exception as e:
        logger.warning("Файл %s не прочитан: %s", up.name, e)
        bad_tables.append({"Файл": up.name, "Ошибка": f"{type(e).__name__}: {e}"})

if bad_tables:
    st.error("Часть файлов пропущена из-за ошибок (остальные обработаны):")
    st.dataframe(pd.DataFrame(bad_tables), width="stretch")

if not tables:
    st.stop()
# =========================

# Выбор файла / листа / диапазона
# =========================
files = _unique([t["source_name"] for t in tables])
f1, f2 = st.columns(2)
with f1:
    file_sel = st.selectbox("Файл", files, index=0)
with f2:
    sheets = [t["sheet_name"] for t in tables if t["source_name"] == file_sel]
    sheet_sel = st.selectbox("Лист", sheets, index=0)

table = next(t for t in tables if t["source_name"] == file_sel and t["sheet_name"] == sheet_sel)
src_key = f"{file_sel}::{sheet_sel}"
kp = _safe_key_prefix(src_key)

try:
    records, dates = load_sheet(table["grid"])
except FormatError as e:
    st.error(str(e))
    st.session_state["analysis"] = None
    st.stop()

if not dates:
    st.error("На листе нет дат в первой строке.")
    st.stop()

st.info(f"Студентов: {len(records)}, дат на листе: {len(dates)}")

idx_options = list(range(len(dates)))
d1, d2 = st.columns(2)
with d1:
    start_i = st.selectbox("Дата начала", idx_options, index=0, format_func=lambda i: dates[i], key=f"{kp}__start")
with d2:
    end_i = st.selectbox("Дата конца", idx_options, index=len(dates) - 1, format_func=lambda i: dates[i], key=f"{kp}__end")

current_key = (src_key, start_i, end_i, tuple(sorted(params.items())))

# устаревший результат не показываем
if st.session_state["analysis_key"] != current_key:
    st.session_state["analysis"] = None

if st.button("Анализировать", type="primary"):
    try:
        st.session_state["analysis"] = analyze_sheet_positions(table["grid"], start_i, end_i, params)
        st.session_state["analysis_key"] = current_key
        st.session_state["feedback"] = None
    except (FormatError, RangeError) as e:
        st.session_state["analysis"] = None
        st.session_state["analysis_key"] = None
        st.error(str(e))

result = st.session_state.get("analysis")
if not result:
    st.stop()

snapshot = result["snapshot"]
selected = result["selected_dates"]
frames = snapshot_to_frames(snapshot)
# =========================

# Результаты
# =========================
m1, m2, m3 = st.columns(3)
with m1:
    st.metric("Студентов", len(snapshot.student_averages))
with m2:
    st.metric("В группе риска", len(snapshot.students_at_risk))
with m3:
    st.metric("Лучший студент", snapshot.best_student_name or "—")

st.subheader("Средний балл (несданные считаются как NL)")
st.dataframe(frames["averages"], width="stretch", hide_index=True)

# Отзыв для выбранного студента
with st.expander("Отзыв для студента", expanded=False):
    names = list(snapshot.student_averages.keys())
    fb_name = st.selectbox("Студент", names, key=f"{kp}__fb_student") if names else None
    if fb_name and st.button("Сгенерировать отзыв"):
        with st.spinner("Генерация отзыва..."):
            res = generate_feedback(build_feedback_request(snapshot, fb_name), settings=RULES["feedback"])
        st.session_state["feedback"] = {"student": fb_name, **res}

    fb = st.session_state.get("feedback")
    if fb:
        st.markdown(f"**Отзыв для {fb['student']}**")
        if "feedback" in fb:
            st.write(fb["feedback"])
        else:
            st.warning(f"Не удалось сформировать отзыв. {fb.get('error', 'Неизвестная ошибка.')}")

st.subheader("Группа риска")
if snapshot.students_at_risk:
    for r in snapshot.students_at_risk:
        with st.expander(f"{r.name}: прогноз {r.projected_average}, не сдано {r.missing}", expanded=False):
            if r.details:
                for d in r.details:
                    st.write(f"- {d}")
            else:
                st.write("Все работы сданы, но оценки низкие.")
else:
    st.success("Студентов в группе риска нет.")

a1, a2 = st.columns(2)
for col, title, items in [
    (a1, "Темы с самыми низкими средними", snapshot.lowest_activities),
    (a2, "Темы с самыми высокими средними", snapshot.highest_activities),
]:
    with col:
        st.subheader(title)
        for a in items:
            with st.expander(f"{a.topic or '(без темы)'}: {a.average}", expanded=False):
                if a.students:
                    st.dataframe(
                        pd.DataFrame([{"Студент": s.student_name, "Оценка": s.grade} for s in a.students]),
                        width="stretch", hide_index=True,
                    )
                else:
                    st.write("Нет студентов в списке.")

g1, g2 = st.columns(2)
with g1:
    st.subheader("Распределение L / ML / NL")
    st.bar_chart(frames["categories"].set_index("Категория"))
with g2:
    st.subheader(f"Динамика лучшего студента: {snapshot.best_student_name or '—'}")
    if not frames["best_series"].empty:
        st.line_chart(frames["best_series"].set_index("Дата"))

st.subheader("Средний балл группы по датам")
if not frames["group_series"].empty:
    st.line_chart(frames["group_series"].set_index("Дата"))
# =========================

# По студенту
# =========================
st.divider()
st.subheader("Студент подробно")
student_names = _unique([r.student_name for r in result["records"]])
if student_names:
    sel = st.selectbox("Студент", student_names, key=f"{kp}__student")
    rec = find_student(result["records"], sel)

    p1, p2 = st.columns(2)
    with p1:
        st.markdown("**Прогресс**")
        pts = student_progress(rec, selected)
        if pts:
            st.line_chart(pd.DataFrame([{"Дата": p.date, "Оценка": p.grade} for p in pts]).set_index("Дата"))
        else:
            st.write("Нет распознанных оценок в диапазоне.")
    with p2:
        st.markdown("**Несданные работы**")
        pend = pending_activities(rec, selected)
        if pend:
            st.dataframe(
                pd.DataFrame([{"Дата": p.date, "Тема": p.topic, "Оценка": p.grade or "пусто"} for p in pend]),
                width="stretch", hide_index=True,
            )
        else:
            st.success("Все работы сданы.")

with st.expander("Средний только по числовым оценкам", expanded=False):
    qa = quantitative_averages(result["records"], selected)
    if qa:
        for q in qa:
            st.markdown(f"**{q.student_name}**: {q.average}")
            st.caption(", ".join(f"{t}: {g}" for t, g in q.details))
    else:
        st.write("Числовых оценок в диапазоне нет.")

st.download_button(
    "Скачать Excel-отчёт",
    data=export_to_excel_bytes(snapshot),
    file_name="Анализ_успеваемости.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)
