"""Activity histograms, fleet summaries, and per-conversation memos."""

from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from app.core.exceptions import MissingCredentialError, ProviderError
from app.models import Conversation, Memo
from app.repositories.conversation_repo import (
    ConversationRepository,
    MessageRecord,
    group_by_conversation,
)
from app.schemas.analytics_schema import ActivityHistogram, HistogramPoint
from app.services.completion_gateway import CompletionGateway
from app.utils.datetime_utils import ensure_utc, now_utc, truncate_to_hour

logger = structlog.get_logger()

WINDOW = timedelta(hours=24)
BUCKET_COUNT = 24

UNTITLED = "未命名"
TRANSCRIPT_SEPARATOR = "\n\n---\n\n"
SPEAKER_LABELS = {"model": "助理", "system": "系统"}
USER_LABEL = "用户"

SUMMARY_NO_ACTIVITY = "未检测到显著活动。"
SUMMARY_NO_CREDENTIAL = "无法生成 AI 摘要（缺少 API Key）。以下为过去24小时的占位摘要。"
SUMMARY_FAILED = "生成摘要失败。"

MEMO_NO_CREDENTIAL = "（无法生成摘要：服务器缺少 API Key）"
MEMO_FAILED = "（生成摘要失败）"
MEMO_EMPTY = "（暂无内容可摘要）"

SUMMARY_TEMPERATURE = 0.3


def speaker_label(role: str) -> str:
    return SPEAKER_LABELS.get(role, USER_LABEL)


def format_lines(messages: Sequence[MessageRecord]) -> str:
    """One ``speaker: text`` line per message."""
    return "\n".join(f"{speaker_label(m.role)}: {m.content.strip()}" for m in messages)


def format_transcript(
    conversation: Conversation | None,
    messages: Sequence[MessageRecord],
) -> str:
    """Header with title and creation time followed by the speaker lines."""
    title = (conversation.title if conversation else None) or UNTITLED
    created = ensure_utc(conversation.created_at).isoformat() if conversation else ""
    return f"会话: {title}｜创建时间: {created}\n{format_lines(messages)}"


def build_summary_prompt(transcripts: str) -> str:
    return "\n".join(
        [
            "You are an executive assistant aggregating company-wide assistant "
            "usage for the last 24 hours.",
            "Write a concise, modern summary in clear bullet points and short paragraphs.",
            "Focus on intents, themes, notable tasks completed, decisions, risks, "
            "and follow-ups.",
            "Keep it actionable. Prefer section headings like: Overview, Top Topics, "
            "Notable Wins, Risks / Open Questions, Follow-ups.",
            "Output in succinct Chinese.",
            "Conversation snapshots (chronological):",
            "<<<BEGIN>>>",
            transcripts,
            "<<<END>>>",
        ]
    )


def build_memo_prompt(transcript: str) -> str:
    return "\n".join(
        [
            "请基于以下对话记录，用中文写一份非常简洁的备忘录。",
            "TLDR：用户想要什么，以及与 AI 的对话中发生了什么。",
            "",
            "对话记录：",
            "<<<BEGIN_CONVERSATION>>>",
            transcript or "（无对话记录）",
            "<<<END_CONVERSATION>>>",
        ]
    )


class AnalyticsService:
    """Derived views over stored messages.

    ``owner`` scoping follows the store: a regular user sees activity from
    their own conversations, the administrator (or ``None``) sees everything.
    """

    def __init__(self, repo: ConversationRepository, gateway: CompletionGateway) -> None:
        self._repo = repo
        self._gateway = gateway

    async def hourly_histogram(
        self,
        now: datetime | None = None,
        owner: str | None = None,
    ) -> ActivityHistogram:
        """Message counts for the 24 hours ending with the current hour."""
        until = ensure_utc(now) if now else now_utc()
        since = until - WINDOW
        end_hour = truncate_to_hour(until)
        starts = [
            end_hour - timedelta(hours=offset)
            for offset in range(BUCKET_COUNT - 1, -1, -1)
        ]
        counts = dict.fromkeys(starts, 0)

        messages = await self._repo.list_messages_since_for_user(since, owner)
        for message in messages:
            hour = truncate_to_hour(message.created_at)
            # Messages older than the first bucket stay out of the series.
            if hour in counts:
                counts[hour] += 1

        return ActivityHistogram(
            series=[HistogramPoint(hour_start=s, count=counts[s]) for s in starts],
            total=len(messages),
            since=since,
            until=until,
        )

    async def fleet_summary(
        self,
        owner: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Natural-language summary of the trailing 24 hours of conversations."""
        until = ensure_utc(now) if now else now_utc()
        messages = await self._repo.list_messages_since_for_user(until - WINDOW, owner)
        grouped = group_by_conversation(messages)
        if not grouped:
            return SUMMARY_NO_ACTIVITY

        conversations = await self._repo.get_conversations_by_ids(grouped)
        transcripts = [
            format_transcript(conversations.get(cid), rows)
            for cid, rows in grouped.items()
        ]
        prompt = build_summary_prompt(TRANSCRIPT_SEPARATOR.join(transcripts))

        try:
            text = await self._gateway.generate(prompt, temperature=SUMMARY_TEMPERATURE)
        except MissingCredentialError:
            return SUMMARY_NO_CREDENTIAL
        except ProviderError as exc:
            logger.error(
                "Fleet summary failed",
                owner=owner,
                conversations=len(grouped),
                error=str(exc),
            )
            return SUMMARY_FAILED

        return text or SUMMARY_NO_ACTIVITY

    async def conversation_memo(
        self,
        conversation_id: str,
        force_regenerate: bool = False,
    ) -> Memo:
        """Cached memo for a conversation, generated on first request or when forced.

        Callers must have checked access to the conversation.
        """
        if not force_regenerate:
            existing = await self._repo.get_memo(conversation_id)
            if existing is not None:
                return existing

        messages = await self._repo.list_messages(conversation_id)
        prompt = build_memo_prompt(format_lines(messages))

        try:
            text = await self._gateway.generate(prompt, temperature=SUMMARY_TEMPERATURE)
            content = text or MEMO_EMPTY
        except MissingCredentialError:
            content = MEMO_NO_CREDENTIAL
        except ProviderError as exc:
            logger.error(
                "Memo generation failed",
                conversation_id=conversation_id,
                error=str(exc),
            )
            content = MEMO_FAILED

        return await self._repo.upsert_memo(conversation_id, content)
