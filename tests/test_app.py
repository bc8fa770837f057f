from pathlib import Path
from streamlit.testing.v1 import AppTest

APP = str(Path(__file__).resolve().parent.parent / "app.py")


def test_app_starts_without_uploads():
    at = AppTest.from_file(APP, default_timeout=30).run()
    assert not at.exception
    assert at.warning[0].value == "Загрузите таблицы."
    assert len(at.number_input) == 5


def test_app_session_state_has_no_busy_flag():
    at = AppTest.from_file(APP, default_timeout=30).run()
    assert at.session_state["feedback"] is None
    assert "feedback_busy" not in at.session_state
