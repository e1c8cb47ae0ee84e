#!/usr/bin/env python3
"""
Sync configuration
Paths, credential key conventions and Slack rate limit settings
"""

import os
from pathlib import Path
from pydantic import BaseModel, Field

# Credential store keys: SLACK_TOKEN_<id> / SLACK_COOKIE_<id>
TOKEN_PREFIX = 'SLACK_TOKEN_'
COOKIE_PREFIX = 'SLACK_COOKIE_'

# Conversation types requested from conversations.list
CONVERSATION_TYPES = 'public_channel,private_channel,im,mpim'

# Slack Tier 3 rate limit: ~50 req/min, so keep at least 1.2s between calls
RATE_LIMIT_SECONDS = 1.3

DEFAULT_ENV_FILE = Path.home() / '.claude' / '.env'
DEFAULT_OUTPUT_ROOT = Path.home() / 'projects' / 'knowledge-base' / 'comms' / 'slack'

STATE_FILE_NAME = '.state.json'


class SyncConfig(BaseModel):
    """Settings shared by every component of a sync run"""
    env_file: Path = DEFAULT_ENV_FILE
    output_root: Path = DEFAULT_OUTPUT_ROOT
    rate_limit_seconds: float = Field(default=RATE_LIMIT_SECONDS, ge=0)
    page_limit: int = Field(default=200, gt=0)
    user_page_limit: int = Field(default=1000, gt=0)
    rate_limit_retries: int = Field(default=0, ge=0)


def load_config(environ=None) -> SyncConfig:
    """
    Build a SyncConfig from defaults plus environment overrides.

    Recognised variables: SLACK_SYNC_ENV_FILE, SLACK_SYNC_OUTPUT_ROOT,
    SLACK_SYNC_RATE_LIMIT, SLACK_SYNC_RETRIES.
    """
    environ = os.environ if environ is None else environ
    overrides = {}

    if environ.get('SLACK_SYNC_ENV_FILE'):
        overrides['env_file'] = Path(environ['SLACK_SYNC_ENV_FILE']).expanduser()
    if environ.get('SLACK_SYNC_OUTPUT_ROOT'):
        overrides['output_root'] = Path(environ['SLACK_SYNC_OUTPUT_ROOT']).expanduser()
    if environ.get('SLACK_SYNC_RATE_LIMIT'):
        overrides['rate_limit_seconds'] = environ['SLACK_SYNC_RATE_LIMIT']
    if environ.get('SLACK_SYNC_RETRIES'):
        overrides['rate_limit_retries'] = environ['SLACK_SYNC_RETRIES']

    return SyncConfig(**overrides)
