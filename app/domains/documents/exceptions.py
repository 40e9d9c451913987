class DocumentError(Exception):
    """Базовая ошибка домена документов"""


class TitleInvalidError(DocumentError, ValueError):
    """Не удалось подобрать свободный slug для заголовка"""

    def __init__(self, title: str):
        super().__init__(f"Title invalid: no free slug for '{title}'")
        self.title = title


class SlugTakenError(DocumentError):
    """Slug занят на момент вставки, несмотря на предварительную проверку"""

    def __init__(self, slug: str):
        super().__init__(f"Slug already taken: {slug}")
        self.slug = slug


class InvalidTransitionError(DocumentError, ValueError):
    """Недопустимый переход состояния публикации"""


class DocumentPermissionError(DocumentError, PermissionError):
    """Недостаточно прав для действия над документом"""


class DocumentNotFoundError(DocumentError, LookupError):
    """Документ не найден"""


class PageNotFoundError(DocumentError, LookupError):
    """Страница документа не найдена"""


class SponsorNotFoundError(DocumentError, LookupError):
    """Спонсор нового документа не найден"""
