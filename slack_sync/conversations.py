#!/usr/bin/env python3
"""
Conversation Enumerator
Lists channels and direct messages for a workspace and resolves filesystem-safe names
"""

import re
from collections import Counter
from slack_sdk import WebClient
from slack_sdk.errors import SlackClientError

from .api import error_reason, next_cursor
from .errors import PartialPageError
from .init_config import SyncConfig, CONVERSATION_TYPES
from .models import Conversation

UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_\-]')
HANDLE_SUFFIX = re.compile(r'\s+\(@.*\)$')


def sanitize_name(raw: str, fallback: str = '') -> str:
    """Replace anything outside [A-Za-z0-9_-] with '_' and lowercase"""
    name = UNSAFE_CHARS.sub('_', raw or '').lower()
    if not name and fallback:
        name = UNSAFE_CHARS.sub('_', fallback).lower()
    return name


def load_user_map(client: WebClient, scheduler, config: SyncConfig) -> dict[str, str]:
    """
    Fetch the user directory of the workspace.

    Returns:
        Dict mapping user ID -> "Real Name (@handle)"
    """
    user_map = {}
    cursor = None

    while True:
        scheduler.wait()
        try:
            response = client.users_list(limit=config.user_page_limit, cursor=cursor)
        except (SlackClientError, OSError) as e:
            raise PartialPageError(f"Failed to list users: {error_reason(e)}") from e

        for member in response.get('members') or []:
            user_id = member.get('id')
            if not user_id:
                continue
            profile = member.get('profile') or {}
            handle = member.get('name')
            display = profile.get('real_name') or handle or user_id
            user_map[user_id] = f"{display} (@{handle})" if handle else display

        cursor = next_cursor(response)
        if not cursor:
            break

    return user_map


def display_name(user_map: dict[str, str], user_id: str) -> str:
    """User's name without the (@handle) suffix, or the raw ID if unknown"""
    entry = user_map.get(user_id)
    if entry is None:
        return user_id
    return HANDLE_SUFFIX.sub('', entry)


def to_conversation(channel: dict, user_map: dict[str, str]):
    """Build a Conversation from a conversations.list entry, or None if it has no ID"""
    conversation_id = channel.get('id')
    if not conversation_id:
        return None

    is_dm = bool(channel.get('is_im') or channel.get('is_mpim'))
    if channel.get('is_im') and channel.get('user'):
        name = sanitize_name(display_name(user_map, channel['user']), channel['user'])
    else:
        name = sanitize_name(channel.get('name') or conversation_id, conversation_id)

    return Conversation(id=conversation_id, name=name, kind='dm' if is_dm else 'channel')


def disambiguate_names(conversations: list[Conversation]) -> list[Conversation]:
    """Suffix names that sanitize to the same directory with the conversation ID"""
    counts = Counter((c.kind, c.name) for c in conversations)
    return [
        c.model_copy(update={'name': f"{c.name}-{sanitize_name(c.id)}"}) if counts[(c.kind, c.name)] > 1 else c
        for c in conversations
    ]


def list_conversations(client: WebClient, scheduler, user_map: dict[str, str],
                       config: SyncConfig) -> list[Conversation]:
    """Page through every channel, private channel, DM and group DM"""
    conversations = []
    cursor = None

    while True:
        scheduler.wait()
        try:
            response = client.conversations_list(
                types=CONVERSATION_TYPES,
                exclude_archived=False,
                limit=config.page_limit,
                cursor=cursor
            )
        except (SlackClientError, OSError) as e:
            raise PartialPageError(
                f"Failed to list conversations after {len(conversations)} found: {error_reason(e)}"
            ) from e

        for channel in response.get('channels') or []:
            conversation = to_conversation(channel, user_map)
            if conversation:
                conversations.append(conversation)

        cursor = next_cursor(response)
        if not cursor:
            break

    return disambiguate_names(conversations)
