#!/usr/bin/env python3
"""
Slack Workspace Sync
Mirrors message history of every configured workspace into month-partitioned
Markdown files under <output_root>/<workspace>/{channels|dms}/<name>/
"""

import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.http_retry.builtin_handlers import (
    ConnectionErrorRetryHandler,
    RateLimitErrorRetryHandler
)

from .conversations import list_conversations, load_user_map, sanitize_name
from .credentials import resolve_workspaces
from .errors import (
    AuthenticationError,
    ConfigurationError,
    PartialPageError,
    SlackSyncError,
    StateError,
    TransportError
)
from .history import sync_conversation
from .init_config import SyncConfig, load_config
from .models import WorkspaceCredential
from .scheduler import FixedIntervalScheduler
from .state import load_state, save_state


def build_client(credential: WorkspaceCredential, config: SyncConfig) -> WebClient:
    """Create a WebClient, sending the session cookie when one is configured"""
    headers = {'Cookie': f"d={credential.cookie}"} if credential.cookie else {}
    retry_handlers = None  # SDK defaults
    if config.rate_limit_retries > 0:
        retry_handlers = [
            ConnectionErrorRetryHandler(),
            RateLimitErrorRetryHandler(max_retry_count=config.rate_limit_retries)
        ]
    return WebClient(token=credential.token, headers=headers, retry_handlers=retry_handlers)


def workspace_slug(team: str) -> str:
    """'Acme Corp' -> 'acme-corp'; never contains path separators"""
    return sanitize_name(re.sub(r'\s+', '-', team.strip()), 'workspace')


def verify_auth(client: WebClient, credential: WorkspaceCredential, scheduler) -> tuple[str, str]:
    """
    Call auth.test for the workspace.

    Returns:
        (team name, user name) of the authenticated identity
    """
    scheduler.wait()
    try:
        auth = client.auth_test()
    except SlackApiError as e:
        raise AuthenticationError(credential.key, e.response.get('error', str(e))) from e
    except (SlackClientError, OSError) as e:
        raise TransportError(f"auth.test failed for {credential.key}: {e}") from e

    if not auth.get('ok', True) or not auth.get('team'):
        raise AuthenticationError(credential.key, auth.get('error') or 'no team in auth.test response')
    return auth['team'], auth.get('user', '')


def sync_workspace(
    credential: WorkspaceCredential,
    config: SyncConfig,
    scheduler,
    client: Optional[WebClient] = None
) -> int:
    """
    Sync every conversation of one workspace

    Args:
        credential: Token/cookie for the workspace
        config: Sync settings
        scheduler: Rate limit scheduler shared by all calls of this workspace
        client: Pre-built client (built from the credential if omitted)

    Returns:
        Number of top-level messages written
    """
    client = client or build_client(credential, config)

    team, user = verify_auth(client, credential, scheduler)
    print(f"  Workspace: {team} ({user})")

    workspace_dir = Path(config.output_root) / workspace_slug(team)
    workspace_dir.mkdir(parents=True, exist_ok=True)

    state = load_state(workspace_dir)
    state.workspace = team

    print("  Loading users...")
    user_map = load_user_map(client, scheduler, config)
    print(f"  {len(user_map)} users loaded.")

    print("  Listing conversations...")
    conversations = list_conversations(client, scheduler, user_map, config)
    print(f"  {len(conversations)} conversations found.")

    total_messages = 0

    # Watermarks of conversations already flushed must survive a later failure
    try:
        for conversation in conversations:
            print(f"  📺 Syncing {conversation.label}...", end='', flush=True)
            try:
                result = sync_conversation(
                    client,
                    conversation,
                    workspace_dir,
                    state.channels.get(conversation.id),
                    user_map,
                    scheduler,
                    config
                )
            except (TransportError, OSError, UnicodeError) as e:
                print(" error")
                print(f"  ⚠️  {conversation.label}: {e}", file=sys.stderr)
                continue

            if result.state is not None:
                state.channels[conversation.id] = result.state
            print(f" {result.count} messages")
            total_messages += result.count

        state.last_synced = datetime.now(timezone.utc).isoformat()
    finally:
        save_state(workspace_dir, state)

    print(f"  ✅ Done. {total_messages} messages written.\n")
    return total_messages


def sync_all(config: SyncConfig, scheduler=None) -> int:
    """
    Sync every workspace in the credential store, one at a time.

    Raises:
        ConfigurationError: if no workspaces are configured

    Returns:
        Total messages written across all workspaces
    """
    print(f"Loading Slack credentials from {config.env_file}...")
    workspaces = resolve_workspaces(config)

    if not workspaces:
        raise ConfigurationError(f"No SLACK_TOKEN_* entries found in {config.env_file}")

    print(f"Found {len(workspaces)} workspace(s): {', '.join(w.key for w in workspaces)}\n")
    Path(config.output_root).mkdir(parents=True, exist_ok=True)

    grand_total = 0

    for credential in workspaces:
        print(f"{'='*80}")
        print(f"WORKSPACE: {credential.key}")
        print(f"{'='*80}")

        workspace_scheduler = scheduler or FixedIntervalScheduler(config.rate_limit_seconds)
        try:
            grand_total += sync_workspace(credential, config, workspace_scheduler)
        except AuthenticationError as e:
            print(f"  ❌ {e}", file=sys.stderr)
        except PartialPageError as e:
            print(f"  ❌ Enumeration aborted for {credential.key}: {e}", file=sys.stderr)
        except StateError as e:
            print(f"  ❌ Skipping {credential.key}: {e}", file=sys.stderr)
        except (SlackSyncError, OSError) as e:
            print(f"  ❌ Error processing {credential.key}: {e}", file=sys.stderr)

    print(f"🎉 Slack sync complete. {grand_total} messages written.")
    return grand_total


def main(config: Optional[SyncConfig] = None) -> int:
    """Run a sync over all workspaces and return the process exit code"""
    config = config or load_config()
    try:
        sync_all(config)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        print("Add SLACK_TOKEN_<workspace>=xoxc-... (and SLACK_COOKIE_<workspace>=xoxd-...) entries first.",
              file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
