#!/usr/bin/env python3
"""
Slack history sync
Downloads new messages from every workspace in the credential store
"""

import sys

from dotenv import load_dotenv
from slack_sync import load_config, sync_slack

load_dotenv()


def main():
    """Run the sync with configuration taken from the environment"""
    return sync_slack(load_config())


if __name__ == "__main__":
    sys.exit(main())
