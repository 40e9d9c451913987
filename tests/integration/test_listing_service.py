"""Integration tests for visibility-aware document listing."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import update

from app.core.messages import RELEVANCE_ORDERING_WARNING, FlashMessages
from app.db.models import Annotation as AnnotationModel
from app.db.repositories import AnnotationActivityRanker
from app.domains.documents.publish_states import DiscussionState, PublishState
from app.domains.documents.schemas import DocumentListQuery
from app.domains.documents.services import DocumentService, ListingService
from app.domains.sponsors.entities import STATUS_ACTIVE


class FixedRanker:
    def __init__(self, ranked_ids):
        self._ranked_ids = list(ranked_ids)

    async def ranked_ids(self):
        return self._ranked_ids


def _titles(page) -> list:
    return [document.title for document in page.documents]


def _query(**params) -> DocumentListQuery:
    params.setdefault("order", "title")
    params.setdefault("order_dir", "asc")
    return DocumentListQuery(**params)


@pytest_asyncio.fixture
async def catalog(factory):
    """Two sponsors with documents in different states."""
    alpha_sponsor = await factory.sponsor("alpha")
    beta_sponsor = await factory.sponsor("beta")
    member = await factory.user(sponsors=[alpha_sponsor])
    admin = await factory.user(is_admin=True)

    docs = {
        "Alpha": await factory.document(alpha_sponsor, title="Alpha"),
        "Beta": await factory.document(alpha_sponsor, title="Beta", publish_state=PublishState.PRIVATE),
        "Gamma": await factory.document(beta_sponsor, title="Gamma"),
        "Delta": await factory.document(beta_sponsor, title="Delta", publish_state=PublishState.UNPUBLISHED),
        "Epsilon": await factory.document(
            alpha_sponsor, title="Epsilon", discussion_state=DiscussionState.CLOSED
        ),
        "Template": await factory.document(alpha_sponsor, title="Template", is_template=True),
    }
    removed = await factory.document(alpha_sponsor, title="Removed")
    await DocumentService(factory.session).delete_document(removed.uuid, member)
    docs["Removed"] = removed

    return {
        "alpha": alpha_sponsor,
        "beta": beta_sponsor,
        "member": member,
        "admin": admin,
        "docs": docs,
    }


@pytest.mark.asyncio
async def test_anonymous_sees_only_published(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(), None)

    assert _titles(page) == ["Alpha", "Epsilon", "Gamma"]
    assert page.total == 3


@pytest.mark.asyncio
async def test_anonymous_requesting_all_still_sees_only_published(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(publish_state=["all"]), None)

    assert _titles(page) == ["Alpha", "Epsilon", "Gamma"]


@pytest.mark.asyncio
async def test_member_sees_own_sponsor_documents_in_any_state(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(), catalog["member"])

    assert _titles(page) == ["Alpha", "Beta", "Epsilon", "Gamma"]


@pytest.mark.asyncio
async def test_admin_with_all_sees_deleted_documents(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(publish_state=["all"]), catalog["admin"])

    assert _titles(page) == ["Alpha", "Beta", "Delta", "Epsilon", "Gamma", "Removed"]
    assert page.total == 6


@pytest.mark.asyncio
async def test_explicit_deleted_state_for_member(session, catalog) -> None:
    page = await ListingService(session).list_documents(
        _query(publish_state=["deleted_by_user"]), catalog["member"]
    )

    assert _titles(page) == ["Removed"]


@pytest.mark.asyncio
async def test_sponsor_filter(session, catalog) -> None:
    page = await ListingService(session).list_documents(
        _query(sponsor_id=[str(catalog["beta"].uuid)]), catalog["admin"]
    )

    assert _titles(page) == ["Delta", "Gamma"]


@pytest.mark.asyncio
async def test_discussion_filter(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(discussion_state=["closed"]), None)

    assert _titles(page) == ["Epsilon"]


@pytest.mark.asyncio
async def test_total_ignores_paging_and_order(session, catalog) -> None:
    service = ListingService(session)

    first = await service.list_documents(_query(page="2", limit="2"), catalog["member"])
    by_created = await service.list_documents(
        DocumentListQuery(order="created_at", order_dir="desc", limit="1"), catalog["member"]
    )

    assert _titles(first) == ["Epsilon", "Gamma"]
    assert first.total == by_created.total == 4
    assert len(by_created.documents) == 1
    assert first.last_page == 2


@pytest.mark.asyncio
async def test_invalid_paging_values_fall_back(session, catalog) -> None:
    page = await ListingService(session).list_documents(_query(page="zero", limit="-5"), None)

    assert page.page == 1
    assert page.per_page == 12
    assert page.total == 3

    huge = await ListingService(session).list_documents(
        _query(page="99999999999999999999999", limit="-3"), None
    )

    assert huge.page == 1
    assert huge.per_page == 12
    assert _titles(huge) == ["Alpha", "Epsilon", "Gamma"]


@pytest.mark.asyncio
async def test_search_ranks_title_matches_above_content_matches(session, factory) -> None:
    sponsor = await factory.sponsor()
    await factory.document(sponsor, title="Farm subsidies", content="Water rights for farmers")
    await factory.document(sponsor, title="Clean water", content="Rivers and lakes")
    await factory.document(sponsor, title="Roads", content="Asphalt")

    page = await ListingService(session).list_documents(DocumentListQuery(q="water"), None)

    assert _titles(page) == ["Clean water", "Farm subsidies"]
    assert page.total == 2


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(session, factory) -> None:
    sponsor = await factory.sponsor()
    await factory.document(sponsor, title="Growth 100%")
    await factory.document(sponsor, title="Growth 1000")

    page = await ListingService(session).list_documents(DocumentListQuery(q="100%"), None)

    assert _titles(page) == ["Growth 100%"]


@pytest.mark.asyncio
async def test_relevance_without_search_warns(session, catalog) -> None:
    flash = FlashMessages()

    page = await ListingService(session, notifier=flash).list_documents(
        DocumentListQuery(order="relevance"), None
    )

    assert page.total == 3
    assert flash.as_list() == [{"level": "warning", "message": RELEVANCE_ORDERING_WARNING}]


@pytest.mark.asyncio
async def test_activity_order_follows_ranker(session, catalog) -> None:
    docs = catalog["docs"]
    ranker = FixedRanker([docs["Gamma"].uuid, docs["Delta"].uuid, docs["Alpha"].uuid])

    page = await ListingService(session, ranker=ranker).list_documents(
        DocumentListQuery(order="activity"), None
    )

    assert _titles(page) == ["Gamma", "Alpha"]
    # total is the size of the ranking, not of the visible subset
    assert page.total == 3


@pytest.mark.asyncio
async def test_activity_order_pages_in_memory(session, catalog) -> None:
    docs = catalog["docs"]
    ranker = FixedRanker([docs["Gamma"].uuid, docs["Epsilon"].uuid, docs["Alpha"].uuid])

    page = await ListingService(session, ranker=ranker).list_documents(
        DocumentListQuery(order="activity", page="2", limit="2"), None
    )

    assert _titles(page) == ["Alpha"]


@pytest.mark.asyncio
async def test_activity_with_empty_ranking(session, catalog) -> None:
    page = await ListingService(session, ranker=FixedRanker([])).list_documents(
        DocumentListQuery(order="activity"), None
    )

    assert page.documents == []
    assert page.total == 0


@pytest.mark.asyncio
async def test_annotation_ranker_counts_recent_visible_annotations(session, factory) -> None:
    sponsor = await factory.sponsor()
    user = await factory.user()
    quiet = await factory.document(sponsor, title="Quiet")
    busy = await factory.document(sponsor, title="Busy")
    closed = await factory.document(sponsor, title="Closed", discussion_state=DiscussionState.CLOSED)
    hidden_heavy = await factory.document(sponsor, title="Hidden")
    for _ in range(2):
        await factory.annotation(busy, user)
        await factory.annotation(closed, user)
        await factory.annotation(hidden_heavy, user, is_hidden=True)
    await factory.annotation(quiet, user)
    old = await factory.annotation(hidden_heavy, user)
    await session.execute(
        update(AnnotationModel)
        .where(AnnotationModel.uuid == old)
        .values(created_at=datetime.utcnow() - timedelta(days=60))
    )
    await session.commit()

    ranked = await AnnotationActivityRanker(session, window_days=30).ranked_ids()

    assert ranked[:2] == [busy.uuid, quiet.uuid]
    assert hidden_heavy.uuid in ranked
    assert closed.uuid not in ranked


@pytest.mark.asyncio
async def test_query_options(session, factory) -> None:
    await factory.sponsor("active-one")
    await factory.sponsor("pending-one", status="pending")

    options = await ListingService(session).query_options()

    assert [sponsor.name for sponsor in options.sponsors] == ["active-one"]
    assert all(sponsor.status == STATUS_ACTIVE for sponsor in options.sponsors)
    assert options.publish_states[0] == "all"
    assert "deleted_by_admin" in options.publish_states
    assert options.discussion_states == ["open", "closed", "hidden"]
