#!/usr/bin/env python3
"""
Credential/Workspace Resolver
Reads SLACK_TOKEN_<id> / SLACK_COOKIE_<id> pairs from a flat KEY=VALUE store
"""

from pathlib import Path
from dotenv import dotenv_values

from .init_config import SyncConfig, TOKEN_PREFIX, COOKIE_PREFIX
from .models import WorkspaceCredential


def load_env_store(path: Path) -> dict[str, str]:
    """Parse the credential store; a missing file yields an empty mapping"""
    path = Path(path)
    if not path.exists():
        return {}

    values = dotenv_values(path, encoding='utf-8')
    return {key: value.strip() for key, value in values.items() if value}


def parse_workspaces(env: dict[str, str]) -> list[WorkspaceCredential]:
    """Group token/cookie entries into one credential per workspace key"""
    workspaces = []
    for name, value in env.items():
        if not name.startswith(TOKEN_PREFIX):
            continue
        key = name[len(TOKEN_PREFIX):]
        if not key:
            continue
        cookie = env.get(f"{COOKIE_PREFIX}{key}", '')
        workspaces.append(WorkspaceCredential(key=key, token=value, cookie=cookie))
    return workspaces


def resolve_workspaces(config: SyncConfig) -> list[WorkspaceCredential]:
    """Load every configured workspace from the store named in config"""
    return parse_workspaces(load_env_store(config.env_file))
