"""Shared pytest fixtures for all test suites."""

import uuid
from collections.abc import AsyncGenerator
from typing import Iterable, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import app.db.models  # noqa: F401  registers tables on Base.metadata
from app.core.db import Base
from app.db.repositories import (
    AnnotationRepository, DocumentRepository, SponsorRepository, UserRepository,
)
from app.domains.documents.entities import Document, DocumentContent
from app.domains.documents.events import DocumentEvent
from app.domains.documents.publish_states import DiscussionState, PublishState
from app.domains.documents.slugs import slugify
from app.domains.identity.entities import User
from app.domains.sponsors.entities import STATUS_ACTIVE, Sponsor


class CollectingEventSink:
    """Event sink that keeps emitted events for assertions."""

    def __init__(self):
        self.events: List[DocumentEvent] = []

    async def emit(self, event: DocumentEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list:
        return [event for event in self.events if isinstance(event, event_type)]


class Factory:
    """Creates committed rows through the repositories."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def sponsor(self, name: Optional[str] = None, status: str = STATUS_ACTIVE) -> Sponsor:
        n = self._next()
        name = name or f"sponsor-{n}"
        sponsor = await SponsorRepository(self.session).create(
            Sponsor(uuid=uuid.uuid4(), name=name, display_name=name.title(), status=status)
        )
        await self.session.commit()
        return sponsor

    async def user(self, sponsors: Iterable[Sponsor] = (), is_admin: bool = False) -> User:
        n = self._next()
        repository = UserRepository(self.session)
        user = await repository.create(
            User.create_user(email=f"user{n}@example.com", username=f"user{n}", is_admin=is_admin)
        )
        for sponsor in sponsors:
            await SponsorRepository(self.session).add_member(sponsor.uuid, user.uuid)
        await self.session.commit()
        return await repository.get_by_uuid(user.uuid)

    async def document(
        self,
        sponsor: Sponsor,
        title: Optional[str] = None,
        publish_state: PublishState = PublishState.PUBLISHED,
        discussion_state: DiscussionState = DiscussionState.OPEN,
        content: str = DocumentContent.PLACEHOLDER,
        is_template: bool = False,
        extra_sponsors: Iterable[Sponsor] = (),
        slug: Optional[str] = None
    ) -> Document:
        n = self._next()
        title = title or f"Document {n}"
        document = Document(
            uuid=uuid.uuid4(),
            title=title,
            slug=slug or f"{slugify(title)}-{n}",
            publish_state=publish_state,
            discussion_state=discussion_state,
            is_template=is_template,
            sponsor_ids=[sponsor.uuid] + [extra.uuid for extra in extra_sponsors]
        )
        created = await DocumentRepository(self.session).create(
            document, DocumentContent.create_page(document.uuid, 1, content)
        )
        await self.session.commit()
        return created

    async def annotation(self, document: Document, user: User, is_hidden: bool = False) -> uuid.UUID:
        annotation_id = await AnnotationRepository(self.session).create(
            document.uuid, user.uuid, "comment", is_hidden=is_hidden
        )
        await self.session.commit()
        return annotation_id


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def factory(session: AsyncSession) -> Factory:
    return Factory(session)


@pytest.fixture
def event_sink() -> CollectingEventSink:
    return CollectingEventSink()
