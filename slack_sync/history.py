#!/usr/bin/env python3
"""
Incremental History Fetcher
Resumes each conversation from its watermark, renders messages and thread
replies as Markdown, and appends them to month-partitioned files
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple, Optional
from slack_sdk import WebClient
from slack_sdk.errors import SlackClientError

from .api import error_reason, next_cursor
from .errors import TransportError
from .init_config import SyncConfig
from .models import (
    BotMessage,
    ChannelState,
    Conversation,
    RegularMessage,
    SlackEvent,
    SystemMessage,
    parse_message,
    ts_value
)


class SyncResult(NamedTuple):
    count: int
    state: Optional[ChannelState]


# ============================================================================
# Formatting
# ============================================================================

def ts_to_datetime(ts: str) -> datetime:
    return datetime.fromtimestamp(ts_value(ts), tz=timezone.utc)


def format_timestamp(ts: str) -> str:
    """Slack ts -> 'YYYY-MM-DD HH:MM' (UTC)"""
    return ts_to_datetime(ts).strftime('%Y-%m-%d %H:%M')


def month_key(ts: str) -> str:
    """Slack ts -> 'YYYY-MM' (UTC)"""
    return ts_to_datetime(ts).strftime('%Y-%m')


def month_label(key: str) -> str:
    """'2024-01' -> 'January 2024'"""
    return datetime.strptime(key, '%Y-%m').strftime('%B %Y')


def author_name(event: SlackEvent, user_map: dict[str, str]) -> str:
    if isinstance(event, RegularMessage):
        if not event.user:
            return 'Unknown'
        return user_map.get(event.user, f"<{event.user}>")
    if isinstance(event, BotMessage):
        return event.username or 'Bot'
    raise ValueError(f"System events are not rendered: {event.subtype}")


def format_message(event: SlackEvent, user_map: dict[str, str], indent: str = '') -> str:
    """Render '**author** timestamp' followed by the text, every line prefixed with indent"""
    text = event.text.strip().replace('\n', f"\n{indent}")
    return f"{indent}**{author_name(event, user_map)}** {format_timestamp(event.ts)}\n{indent}{text}"


def render_block(event: SlackEvent, replies: list, user_map: dict[str, str]) -> str:
    """Render a top-level message with its thread quoted beneath it"""
    lines = [format_message(event, user_map)]
    if replies:
        noun = 'reply' if len(replies) == 1 else 'replies'
        lines.append(f"> **Thread ({len(replies)} {noun})**")
        for reply in replies:
            lines.append(format_message(reply, user_map, indent='> '))
    return '\n'.join(lines)


# ============================================================================
# Remote calls
# ============================================================================

def _transport_error(action: str, conversation_id: str, e: Exception) -> TransportError:
    return TransportError(f"Failed to {action} for {conversation_id}: {error_reason(e)}")


def fetch_thread_replies(client: WebClient, scheduler, conversation_id: str, parent_ts: str,
                         config: SyncConfig) -> list:
    """
    Fetch every reply of a thread, excluding the parent message.

    The first item of the first page duplicates the parent; later pages may
    repeat it as well, so anything carrying the parent ts is dropped.
    """
    replies = []
    cursor = None
    first_page = True

    while True:
        scheduler.wait()
        try:
            response = client.conversations_replies(
                channel=conversation_id,
                ts=parent_ts,
                cursor=cursor,
                limit=config.page_limit
            )
        except (SlackClientError, OSError) as e:
            raise _transport_error('fetch thread replies', conversation_id, e) from e

        items = response.get('messages') or []
        if first_page:
            items = items[1:]
            first_page = False

        for raw in items:
            event = parse_message(raw)
            if event is None or isinstance(event, SystemMessage) or event.ts == parent_ts:
                continue
            replies.append(event)

        cursor = next_cursor(response)
        if not cursor:
            break

    return replies


def iter_history_pages(client: WebClient, scheduler, conversation_id: str,
                       oldest: Optional[str], config: SyncConfig):
    """Yield each page of messages strictly newer than oldest"""
    cursor = None

    while True:
        params = {'channel': conversation_id, 'cursor': cursor, 'limit': config.page_limit}
        if oldest:
            params['oldest'] = oldest

        scheduler.wait()
        try:
            response = client.conversations_history(**params)
        except (SlackClientError, OSError) as e:
            raise _transport_error('fetch history', conversation_id, e) from e

        yield response.get('messages') or []

        cursor = next_cursor(response)
        if not cursor:
            break


# ============================================================================
# Output files
# ============================================================================

def flush_buffer(directory: Path, title: str, buffer: dict[str, list[str]]) -> list[Path]:
    """
    Append rendered blocks to month files.

    Args:
        directory: Conversation directory
        title: Conversation title used in the header of new files
        buffer: Month key -> ordered rendered blocks

    Returns:
        Paths of the files written
    """
    directory.mkdir(parents=True, exist_ok=True)
    written = []

    for key, blocks in buffer.items():
        file_path = directory / f"{key}.md"
        content = '\n\n'.join(blocks) + '\n'

        if file_path.exists():
            existing = file_path.read_text(encoding='utf-8')
            file_path.write_text(existing.rstrip() + '\n\n' + content, encoding='utf-8')
        else:
            header = f"# {title} - {month_label(key)}\n\n---\n\n"
            file_path.write_text(header + content, encoding='utf-8')
        written.append(file_path)

    return written


# ============================================================================
# Sync
# ============================================================================

def sync_conversation(
    client: WebClient,
    conversation: Conversation,
    workspace_dir: Path,
    prior_state: Optional[ChannelState],
    user_map: dict[str, str],
    scheduler,
    config: SyncConfig
) -> SyncResult:
    """
    Fetch messages newer than the stored watermark and append them to month files.

    Nothing is written until every page has been fetched, so a failure
    mid-pagination leaves both the files and the watermark untouched.

    Returns:
        SyncResult with the message count and the new ChannelState
        (None when no messages were written)
    """
    oldest = prior_state.last_ts if prior_state else None
    events = []

    for page in iter_history_pages(client, scheduler, conversation.id, oldest, config):
        for raw in page:
            event = parse_message(raw)
            if event is None or isinstance(event, SystemMessage):
                continue
            events.append(event)

    if not events:
        return SyncResult(0, None)

    # Pages arrive newest-first; files read oldest-first
    events.sort(key=lambda e: ts_value(e.ts))

    buffer: dict[str, list[str]] = {}
    latest_ts = oldest
    for event in events:
        replies = []
        if event.reply_count > 0:
            replies = fetch_thread_replies(client, scheduler, conversation.id, event.ts, config)

        buffer.setdefault(month_key(event.ts), []).append(render_block(event, replies, user_map))

        if latest_ts is None or ts_value(event.ts) > ts_value(latest_ts):
            latest_ts = event.ts
    count = len(events)

    flush_buffer(workspace_dir / conversation.subdir / conversation.name, conversation.title, buffer)
    return SyncResult(count, ChannelState(name=conversation.name, last_ts=latest_ts))
