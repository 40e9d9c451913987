"""Стратегии сортировки и постраничного вывода списка документов"""
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Union
import logging
import math
import uuid

from app.core.messages import RELEVANCE_ORDERING_WARNING

logger = logging.getLogger(__name__)

ORDER_ACTIVITY = "activity"
ORDER_RELEVANCE = "relevance"
DEFAULT_ORDER_FIELD = "updated_at"
DEFAULT_ORDER_DIR = "desc"
SORTABLE_FIELDS = ("title", "created_at", "updated_at")
# наибольшее значение знакового 64-битного INTEGER в SQL
MAX_SQL_INTEGER = 2 ** 63 - 1


class ActivityRanker(Protocol):
    """Внешний рейтинг активности: упорядоченные id документов с активностью"""

    async def ranked_ids(self) -> List[uuid.UUID]:
        ...


@dataclass(frozen=True)
class StandardSort:
    """Сортировка средствами базы: по полю или по релевантности поиска"""

    field: str = DEFAULT_ORDER_FIELD
    direction: str = DEFAULT_ORDER_DIR
    warning: Optional[str] = None

    @property
    def by_relevance(self) -> bool:
        return self.field == ORDER_RELEVANCE


@dataclass(frozen=True)
class ActivitySort:
    """Сортировка по внешнему рейтингу активности, окно считается в памяти"""


ListingStrategy = Union[StandardSort, ActivitySort]


def normalize_direction(order_dir: Optional[str]) -> str:
    if order_dir and order_dir.lower() in ("asc", "desc"):
        return order_dir.lower()
    return DEFAULT_ORDER_DIR


def normalize_search(search: Optional[str]) -> Optional[str]:
    if search is None:
        return None
    search = search.strip()
    return search or None


def choose_strategy(
    order: Optional[str],
    order_dir: Optional[str],
    search: Optional[str]
) -> ListingStrategy:
    """Выбор стратегии один раз на запрос"""
    if order == ORDER_ACTIVITY:
        return ActivitySort()

    if search and (order is None or order == ORDER_RELEVANCE):
        return StandardSort(field=ORDER_RELEVANCE, direction="desc")

    if order == ORDER_RELEVANCE:
        # релевантность без поискового запроса не имеет смысла
        return StandardSort(warning=RELEVANCE_ORDERING_WARNING)

    if order in SORTABLE_FIELDS:
        return StandardSort(field=order, direction=normalize_direction(order_dir))

    if order is not None:
        logger.warning(f"Unknown order field {order!r}, falling back to {DEFAULT_ORDER_FIELD}")
    return StandardSort()


def parse_positive_int(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """Положительное целое не больше maximum или значение по умолчанию"""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number <= 0 or (maximum is not None and number > maximum):
        return default
    return number


@dataclass(frozen=True)
class PageWindow:
    page: int
    per_page: int

    @classmethod
    def from_raw(cls, page: Any, per_page: Any, default_per_page: int, max_per_page: int) -> "PageWindow":
        """Некорректные значения заменяются значениями по умолчанию"""
        per_page = min(parse_positive_int(per_page, default_per_page), max_per_page)
        # offset должен помещаться в SQL INTEGER
        max_page = MAX_SQL_INTEGER // per_page + 1
        return cls(page=parse_positive_int(page, 1, max_page), per_page=per_page)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def apply(self, items: Sequence[Any]) -> List[Any]:
        return list(items[self.offset:self.offset + self.per_page])


def rank_by_position(documents: Sequence[Any], ranked_ids: Sequence[uuid.UUID]) -> List[Any]:
    """Упорядочить документы по позиции их id во внешнем рейтинге"""
    position = {document_id: index for index, document_id in enumerate(ranked_ids)}
    ranked = [document for document in documents if document.uuid in position]
    return sorted(ranked, key=lambda document: position[document.uuid])


@dataclass
class DocumentListPage:
    documents: List[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page
