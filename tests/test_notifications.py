"""Tests for the notification feed."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from marketplace.core.errors import QueryFailure
from marketplace.data.notifications import build_notifications
from marketplace.repositories.notifications import InMemoryNotificationRepository
from marketplace.schemas.properties import OutcomeStatus
from marketplace.services.notifications import NotificationService


@pytest.fixture
def service() -> NotificationService:
    return NotificationService(InMemoryNotificationRepository(build_notifications(), latency_ms=0))


@pytest.mark.asyncio
async def test_feed_is_newest_first_with_unread_total(service, tenant_session) -> None:
    page = await service.feed(tenant_session, limit=2)

    assert [n.id for n in page.items] == ["n1", "n3"]
    assert page.total_count == 3
    assert page.has_more is True
    assert page.unread_count == 2
    assert service.unread_count(tenant_session) == 2


@pytest.mark.asyncio
async def test_pager_drives_the_feed(service, tenant_session) -> None:
    pager = service.pager(tenant_session)

    first = await pager.search()
    more = await pager.load_more()

    assert [n.id for n in first.items] == ["n1", "n3", "n2"]
    assert first.has_more is False
    assert more.status is OutcomeStatus.IGNORED


@pytest.mark.asyncio
async def test_preview_and_mark_read(service, tenant_session) -> None:
    preview = await service.preview(tenant_session)
    assert preview.status is OutcomeStatus.OK
    assert preview.unread_count == 2

    assert await service.mark_read(tenant_session, "n1") is OutcomeStatus.OK
    assert service.unread_count(tenant_session) == 1
    assert await service.mark_read(tenant_session, "n1") is OutcomeStatus.OK
    assert service.unread_count(tenant_session) == 1

    page = await service.feed(tenant_session)
    assert page.unread_count == 1


@pytest.mark.asyncio
async def test_mark_read_only_touches_own_notifications(service, tenant_session) -> None:
    assert await service.mark_read(tenant_session, "n4") is OutcomeStatus.NOT_FOUND
    assert await service.mark_read(tenant_session, "n99") is OutcomeStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_mark_all_read(service, tenant_session, buyer_session) -> None:
    assert await service.mark_all_read(tenant_session) is OutcomeStatus.OK

    assert service.unread_count(tenant_session) == 0
    assert (await service.feed(tenant_session)).unread_count == 0
    assert (await service.feed(buyer_session)).unread_count == 1


@pytest.mark.asyncio
async def test_failures_are_reported_as_outcomes(tenant_session) -> None:
    repository = AsyncMock()
    repository.page.side_effect = QueryFailure("offline")
    repository.mark_all_read.side_effect = asyncio.TimeoutError()
    service = NotificationService(repository)

    preview = await service.preview(tenant_session)

    assert preview.status is OutcomeStatus.FAILED
    assert preview.error is not None and preview.error.code == "query_failed"
    assert await service.mark_all_read(tenant_session) is OutcomeStatus.FAILED
    assert service.unread_count(tenant_session) is None
