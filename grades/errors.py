class FormatError(ValueError):
    """Лист не подходит под формат: строка дат, строка тем, строки студентов."""


class RangeError(ValueError):
    """Диапазон дат не найден на оси листа или начало позже конца."""
