#!/usr/bin/env python3
"""
Error taxonomy for Slack sync runs
"""


class SlackSyncError(Exception):
    """Base class for sync failures"""


class ConfigurationError(SlackSyncError):
    """Credential store missing or no workspaces configured"""


class AuthenticationError(SlackSyncError):
    """Slack rejected the credentials of a workspace"""

    def __init__(self, workspace_key: str, reason: str):
        super().__init__(f"Authentication failed for {workspace_key}: {reason}")
        self.workspace_key = workspace_key
        self.reason = reason


class TransportError(SlackSyncError):
    """Network failure or API rejection while syncing one conversation"""


class PartialPageError(SlackSyncError):
    """A listing page failed, so the listing for the workspace is unusable"""


class StateError(SlackSyncError):
    """The persisted sync state of a workspace cannot be read"""
