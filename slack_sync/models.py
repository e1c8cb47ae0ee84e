#!/usr/bin/env python3
"""
Pydantic models for workspace credentials, conversations, sync state and messages
"""

import json
from pathlib import Path
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Credentials and conversations
# ============================================================================

class WorkspaceCredential(BaseModel):
    """Auth for one workspace, loaded from the credential store"""
    model_config = ConfigDict(frozen=True)

    key: str
    token: str
    cookie: str = ''


class Conversation(BaseModel):
    """A channel or direct-message conversation to sync"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str  # filesystem-safe
    kind: Literal['channel', 'dm']

    @property
    def subdir(self) -> str:
        return 'channels' if self.kind == 'channel' else 'dms'

    @property
    def title(self) -> str:
        return f"#{self.name}" if self.kind == 'channel' else self.name

    @property
    def label(self) -> str:
        return f"#{self.name}" if self.kind == 'channel' else f"DM:{self.name}"


# ============================================================================
# Persisted state
# ============================================================================

class ChannelState(BaseModel):
    """Watermark for one conversation"""
    name: str
    last_ts: str


class SyncState(BaseModel):
    """Durable per-workspace sync state"""
    workspace: str = ''
    last_synced: str = ''
    channels: dict[str, ChannelState] = Field(default_factory=dict)

    @classmethod
    def from_json_file(cls, path: Path) -> 'SyncState':
        """Load state from JSON file"""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls(**data)

    def to_json_file(self, path: Path):
        """Save state to JSON file"""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.model_dump(), f, indent=2, ensure_ascii=False)


# ============================================================================
# Messages
# ============================================================================

# Membership events carry no conversation content
SYSTEM_SUBTYPES = frozenset({'channel_join', 'channel_leave', 'group_join', 'group_leave'})


def ts_value(ts: str) -> float:
    """Numeric value of a Slack timestamp string"""
    return float(ts)


class RegularMessage(BaseModel):
    """Message posted by a person"""
    kind: Literal['regular'] = 'regular'
    ts: str
    user: Optional[str] = None
    text: str = ''
    reply_count: int = 0


class BotMessage(BaseModel):
    """Message posted by a bot or integration"""
    kind: Literal['bot'] = 'bot'
    ts: str
    bot_id: Optional[str] = None
    username: Optional[str] = None
    text: str = ''
    reply_count: int = 0


class SystemMessage(BaseModel):
    """Join/leave event"""
    kind: Literal['system'] = 'system'
    ts: str
    subtype: str


SlackEvent = Union[RegularMessage, BotMessage, SystemMessage]


def parse_message(raw: dict) -> Optional[SlackEvent]:
    """
    Classify a raw message dict from the Slack API.

    Returns None for entries without a timestamp.
    """
    ts = raw.get('ts')
    if not ts:
        return None

    subtype = raw.get('subtype')
    text = raw.get('text') or ''
    reply_count = raw.get('reply_count') or 0

    if subtype in SYSTEM_SUBTYPES:
        return SystemMessage(ts=ts, subtype=subtype)

    if raw.get('user'):
        return RegularMessage(ts=ts, user=raw['user'], text=text, reply_count=reply_count)

    if raw.get('bot_id') or subtype == 'bot_message':
        return BotMessage(
            ts=ts,
            bot_id=raw.get('bot_id'),
            username=raw.get('username'),
            text=text,
            reply_count=reply_count
        )

    return RegularMessage(ts=ts, text=text, reply_count=reply_count)
