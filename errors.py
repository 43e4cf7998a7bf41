"""
Исключения компрессора: отсутствующий источник, повреждённые данные,
ошибка записи результата.
"""

from typing import Optional


class HuffmanError(Exception):
    def __init__(self, reason: str, path: Optional[str] = None):
        self.reason = reason
        self.path = path
        super().__init__(str(self))

    def __str__(self):
        if self.path:
            return f"{self.path}: {self.reason}"
        return self.reason

    def with_path(self, path: str) -> 'HuffmanError':
        return type(self)(self.reason, path)


class SourceNotFound(HuffmanError):
    pass


class SourceCorrupt(HuffmanError, ValueError):
    pass


class SinkWriteFailed(HuffmanError):
    pass
