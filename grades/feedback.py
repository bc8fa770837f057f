from __future__ import annotations
import os
import logging
from typing import Any, Dict, Mapping, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from .utils import load_rules

logger = logging.getLogger(__name__)

API_KEY_ENV = "GEMINI_API_KEY"

PROMPT_TEMPLATE = (
    "Ты - помощник преподавателя. Составь персональный отзыв для студента {student_name} "
    "по его успеваемости. Текущий средний балл: {current_average} (шкала 1-9). "
    "Не сдано активностей: {missing_activities}. "
    "Темы с самыми низкими оценками: {low_topics}. "
    "Дай конструктивные советы, как улучшить результат, и добавь ободряющее сообщение."
)

_session = requests.Session()
_retry = Retry(
    total=3, connect=2, read=2, status=2, backoff_factor=0.6,
    status_forcelist=(429, 500, 502, 503, 504),
    allowed_methods=frozenset(["POST"]),
    # после исчерпания повторов отдаём последний ответ, а не RetryError
    raise_on_status=False,
)
_adapter = HTTPAdapter(max_retries=_retry)
_session.mount("https://", _adapter)
_session.mount("http://", _adapter)


def build_feedback_prompt(request: Mapping[str, Any]) -> str:
    topics = list(request.get("lowGradeTopics") or [])
    return PROMPT_TEMPLATE.format(
        student_name=request.get("studentName", ""),
        current_average=request.get("currentAverage", ""),
        missing_activities=request.get("missingActivities", 0),
        low_topics=", ".join(topics) if topics else "нет",
    )


def _extract_text(result: Any) -> Optional[str]:
    # candidates[0].content.parts[0].text
    try:
        text = result["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


def generate_feedback(
    request: Mapping[str, Any],
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None,
    settings: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """
    Запрос к сервису генерации текста.
    Возвращает {"feedback": текст} или {"error": сообщение}; исключений наружу не бросает.
    """
    api_key = api_key or os.environ.get(API_KEY_ENV)
    if not api_key:
        logger.error("%s не задан в окружении", API_KEY_ENV)
        return {"error": f"Ключ API не настроен (переменная окружения {API_KEY_ENV})."}

    cfg = dict(load_rules()["feedback"])
    cfg.update(settings or {})
    url = str(cfg["endpoint"]).format(model=cfg["model"])
    payload = {"contents": [{"role": "user", "parts": [{"text": build_feedback_prompt(request)}]}]}

    s = session or _session
    try:
        r = s.post(url, params={"key": api_key}, json=payload, timeout=float(cfg.get("timeout", 30)))
    except requests.exceptions.Timeout:
        logger.warning("Сервис отзывов не ответил вовремя")
        return {"error": "Сервис генерации отзывов не ответил вовремя. Попробуйте ещё раз."}
    except requests.exceptions.RequestException as e:
        logger.warning("Ошибка соединения с сервисом отзывов: %s", e)
        return {"error": "Не удалось подключиться к сервису генерации отзывов. Проверьте соединение."}

    try:
        result = r.json()
    except ValueError:
        result = None

    if not r.ok:
        detail = ""
        if isinstance(result, dict) and isinstance(result.get("error"), dict):
            detail = str(result["error"].get("message", ""))
        logger.warning("Сервис отзывов вернул %s: %s", r.status_code, detail or r.text[:300])
        return {"error": f"Сервис вернул ошибку {r.status_code}" + (f": {detail}" if detail else ".")}

    text = _extract_text(result)
    if text is None:
        logger.error("Неожиданная структура ответа сервиса отзывов: %r", result)
        return {"error": "Не удалось сформировать отзыв: неожиданная структура ответа."}
    return {"feedback": text}
