#!/usr/bin/env python3
"""
Sync state persistence
One .state.json per workspace directory, replaced atomically on save
"""

import os
import tempfile
from pathlib import Path

from .errors import StateError
from .init_config import STATE_FILE_NAME
from .models import SyncState


def state_path(workspace_dir: Path) -> Path:
    return Path(workspace_dir) / STATE_FILE_NAME


def load_state(workspace_dir: Path) -> SyncState:
    """Load the workspace state, or an empty state on first sync"""
    path = state_path(workspace_dir)
    if not path.exists():
        return SyncState()
    try:
        return SyncState.from_json_file(path)
    except (ValueError, TypeError) as e:  # bad JSON, failed validation, non-object root
        raise StateError(f"Unreadable sync state {path}: {e}") from e


def save_state(workspace_dir: Path, state: SyncState) -> Path:
    """Write state to a temp file beside the target, then swap it into place"""
    path = state_path(workspace_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix='.state.', suffix='.tmp', dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        state.to_json_file(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path
