"""Tests for AnalyticsService."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import MissingCredentialError, ProviderError
from app.models import Message
from app.repositories.conversation_repo import ConversationRepository
from app.services.analytics_service import (
    MEMO_EMPTY,
    MEMO_FAILED,
    MEMO_NO_CREDENTIAL,
    SUMMARY_FAILED,
    SUMMARY_NO_ACTIVITY,
    SUMMARY_NO_CREDENTIAL,
    TRANSCRIPT_SEPARATOR,
    AnalyticsService,
)
from app.services.completion_gateway import CompletionGateway

NOW = datetime(2026, 1, 2, 12, 30, tzinfo=UTC)


async def add_at(
    session: AsyncSession,
    conversation_id: str,
    created_at: datetime,
    role: str = "user",
    content: str = "hi",
) -> None:
    session.add(
        Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=created_at,
        )
    )
    await session.flush()


def failing_gateway(error: Exception) -> MagicMock:
    gateway = MagicMock(spec=CompletionGateway)
    gateway.generate = AsyncMock(side_effect=error)
    return gateway


class TestHourlyHistogram:
    """Always 24 hourly points ending at the current hour."""

    async def test_empty_store(
        self, repo: ConversationRepository, gateway: CompletionGateway
    ) -> None:
        histogram = await AnalyticsService(repo, gateway).hourly_histogram(now=NOW)

        assert len(histogram.series) == 24
        assert all(point.count == 0 for point in histogram.series)
        assert histogram.series[-1].hour_start == datetime(2026, 1, 2, 12, tzinfo=UTC)
        assert histogram.series[0].hour_start == datetime(2026, 1, 1, 13, tzinfo=UTC)
        assert histogram.total == 0
        assert histogram.since == NOW - timedelta(hours=24)
        assert histogram.until == NOW

    async def test_buckets(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        gateway: CompletionGateway,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        for moment in (
            datetime(2026, 1, 2, 12, 5, tzinfo=UTC),
            datetime(2026, 1, 2, 12, 29, tzinfo=UTC),
            datetime(2026, 1, 2, 11, 59, tzinfo=UTC),
            datetime(2026, 1, 1, 13, 10, tzinfo=UTC),
            # Inside the window but before the first bucket.
            datetime(2026, 1, 1, 12, 40, tzinfo=UTC),
            # Outside the window.
            datetime(2026, 1, 1, 11, 0, tzinfo=UTC),
        ):
            await add_at(db_session, conversation.id, moment)

        histogram = await AnalyticsService(repo, gateway).hourly_histogram(now=NOW)
        counts = {p.hour_start.hour: p.count for p in histogram.series}

        assert len(histogram.series) == 24
        assert counts[12] == 2
        assert counts[11] == 1
        assert histogram.series[0].count == 1
        assert sum(p.count for p in histogram.series) == 4
        assert histogram.total == 5

    async def test_scoped_to_owner(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        gateway: CompletionGateway,
    ) -> None:
        mine = await repo.create_conversation(owner="test1")
        theirs = await repo.create_conversation(owner="test2")
        await add_at(db_session, mine.id, NOW - timedelta(minutes=5))
        await add_at(db_session, theirs.id, NOW - timedelta(minutes=5))

        service = AnalyticsService(repo, gateway)
        assert (await service.hourly_histogram(now=NOW, owner="test1")).total == 1
        assert (await service.hourly_histogram(now=NOW, owner="admin")).total == 2


class TestFleetSummary:
    """Trailing-24h summary through the gateway."""

    async def test_no_activity_skips_gateway(
        self,
        repo: ConversationRepository,
        gateway: CompletionGateway,
        model_factory: MagicMock,
    ) -> None:
        summary = await AnalyticsService(repo, gateway).fleet_summary(now=NOW)
        assert summary == SUMMARY_NO_ACTIVITY
        model_factory.assert_not_called()

    async def test_prompt_contains_transcripts(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        first = await repo.create_conversation(title="Trip", owner="test1")
        second = await repo.create_conversation(title="Budget", owner="test2")
        await add_at(db_session, first.id, NOW - timedelta(hours=2), "user", "where to go")
        await add_at(db_session, first.id, NOW - timedelta(hours=2, minutes=-1), "model", "Kyoto")
        await add_at(db_session, second.id, NOW - timedelta(hours=1), "system", "note")

        summary = await AnalyticsService(repo, gateway).fleet_summary(now=NOW)

        assert summary == "Test response"
        (messages,) = mock_llm.ainvoke.await_args.args
        prompt = messages[0].content
        assert "<<<BEGIN>>>" in prompt and "<<<END>>>" in prompt
        assert "会话: Trip｜创建时间: " in prompt
        assert "用户: where to go\n助理: Kyoto" in prompt
        assert "系统: note" in prompt
        assert TRANSCRIPT_SEPARATOR in prompt
        assert "Output in succinct Chinese." in prompt

    async def test_scoped_to_owner(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        mine = await repo.create_conversation(title="Mine", owner="test1")
        theirs = await repo.create_conversation(title="Theirs", owner="test2")
        await add_at(db_session, mine.id, NOW - timedelta(hours=1))
        await add_at(db_session, theirs.id, NOW - timedelta(hours=1))

        await AnalyticsService(repo, gateway).fleet_summary(owner="test1", now=NOW)
        (messages,) = mock_llm.ainvoke.await_args.args
        assert "Mine" in messages[0].content
        assert "Theirs" not in messages[0].content

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (MissingCredentialError("no key"), SUMMARY_NO_CREDENTIAL),
            (ProviderError("boom"), SUMMARY_FAILED),
        ],
    )
    async def test_failures_become_text(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        error: Exception,
        expected: str,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        await add_at(db_session, conversation.id, NOW - timedelta(hours=1))

        service = AnalyticsService(repo, failing_gateway(error))
        assert await service.fleet_summary(now=NOW) == expected

    async def test_empty_output(
        self,
        repo: ConversationRepository,
        db_session: AsyncSession,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        await add_at(db_session, conversation.id, NOW - timedelta(hours=1))
        mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content=""))

        summary = await AnalyticsService(repo, gateway).fleet_summary(now=NOW)
        assert summary == SUMMARY_NO_ACTIVITY


class TestConversationMemo:
    """Cached, regenerable memos."""

    async def test_generates_then_caches(
        self,
        repo: ConversationRepository,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        await repo.add_message(conversation.id, "user", "book a flight")
        service = AnalyticsService(repo, gateway)

        memo = await service.conversation_memo(conversation.id)
        assert memo.content == "Test response"
        (messages,) = mock_llm.ainvoke.await_args.args
        assert "用户: book a flight" in messages[0].content
        assert "<<<BEGIN_CONVERSATION>>>" in messages[0].content

        mock_llm.ainvoke.reset_mock()
        again = await service.conversation_memo(conversation.id)
        assert again.content == "Test response"
        mock_llm.ainvoke.assert_not_awaited()

    async def test_regenerate_preserves_created_at(
        self,
        repo: ConversationRepository,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        service = AnalyticsService(repo, gateway)
        first = await service.conversation_memo(conversation.id)
        created_at = first.created_at

        mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="fresh"))
        regenerated = await service.conversation_memo(
            conversation.id, force_regenerate=True
        )
        assert regenerated.content == "fresh"
        assert regenerated.created_at == created_at
        assert regenerated.updated_at >= created_at

    async def test_empty_conversation_prompt(
        self,
        repo: ConversationRepository,
        gateway: CompletionGateway,
        mock_llm: MagicMock,
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content=" "))
        memo = await AnalyticsService(repo, gateway).conversation_memo(conversation.id)
        assert memo.content == MEMO_EMPTY
        (messages,) = mock_llm.ainvoke.await_args.args
        assert "（无对话记录）" in messages[0].content

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (MissingCredentialError("no key"), MEMO_NO_CREDENTIAL),
            (ProviderError("boom"), MEMO_FAILED),
        ],
    )
    async def test_failures_store_placeholder(
        self, repo: ConversationRepository, error: Exception, expected: str
    ) -> None:
        conversation = await repo.create_conversation(owner="test1")
        service = AnalyticsService(repo, failing_gateway(error))

        memo = await service.conversation_memo(conversation.id)
        assert memo.content == expected
        stored = await repo.get_memo(conversation.id)
        assert stored is not None and stored.content == expected
