"""
Этот пакет содержит:
- загрузку листов (XLSX/CSV) в сетку текстовых ячеек
- нормализацию оценок (L/ML/NL, баллы, проценты -> шкала 1..9)
- определение колонок-активностей и разбор листа по студентам
- выбор диапазона дат
- анализ успеваемости (средние, группа риска, рейтинги тем, динамика)
- генерацию отзывов через внешний сервис
- экспорт отчёта
"""
from .errors import FormatError, RangeError
from .normalize import normalize_grade, is_qualitative_grade, is_quantitative_grade, qualitative_category
from .classify import classify_activity_columns
from .extract import extract_student_records
from .dates import select_date_range, select_date_positions, default_date_range
from .analysis import analyze, build_feedback_request, MISSING_GRADE_FALLBACK
from .students import pending_activities, student_progress, quantitative_averages, find_student
from .pipeline import load_sheet, analyze_sheet, analyze_sheet_positions
from .ingest import load_grids_from_uploads, grid_from_matrix
from .feedback import build_feedback_prompt, generate_feedback
from .export import snapshot_to_frames, export_to_excel_bytes

__all__ = [
    "FormatError",
    "RangeError",
    "normalize_grade",
    "is_qualitative_grade",
    "is_quantitative_grade",
    "qualitative_category",
    "classify_activity_columns",
    "extract_student_records",
    "select_date_range",
    "select_date_positions",
    "default_date_range",
    "analyze",
    "build_feedback_request",
    "MISSING_GRADE_FALLBACK",
    "pending_activities",
    "student_progress",
    "quantitative_averages",
    "find_student",
    "load_sheet",
    "analyze_sheet",
    "analyze_sheet_positions",
    "load_grids_from_uploads",
    "grid_from_matrix",
    "build_feedback_prompt",
    "generate_feedback",
    "snapshot_to_frames",
    "export_to_excel_bytes",
]
