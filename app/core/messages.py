from typing import List, Tuple

# Тексты пользовательских сообщений
RELEVANCE_ORDERING_WARNING = "Relevance ordering requires a search query; showing most recently updated documents instead."
DOCUMENT_CREATED = "Document created."
DOCUMENT_UPDATED = "Document updated."
DOCUMENT_DELETED = "Document deleted. <a href='{restore_path}'>Restore it</a>."
DOCUMENT_RESTORED = "Document restored."
DOCUMENT_PAGE_ADDED = "Page added."
DOCUMENT_SUPPORT_UPDATED = "Your support has been updated."
DOCUMENT_TITLE_INVALID = "Title invalid, please choose a different title."


class FlashMessages:
    """Сообщения для пользователя в рамках одного запроса"""

    def __init__(self):
        self._messages: List[Tuple[str, str]] = []

    def flash(self, message: str, level: str = "info") -> None:
        self._messages.append((level, message))

    def warning(self, message: str) -> None:
        self.flash(message, "warning")

    def as_list(self) -> List[dict]:
        return [{"level": level, "message": message} for level, message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(self._messages)


def get_flash_messages() -> FlashMessages:
    """Зависимость FastAPI: новый набор сообщений на каждый запрос"""
    return FlashMessages()
