"""
Slack Sync Library
Incremental multi-workspace Slack history export to month-partitioned Markdown
"""

from .init_config import SyncConfig, load_config
from .sync_workspaces import main as sync_slack, sync_all, sync_workspace

__all__ = ['SyncConfig', 'load_config', 'sync_slack', 'sync_all', 'sync_workspace']
