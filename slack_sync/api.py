#!/usr/bin/env python3
"""
Helpers for reading Slack Web API responses and errors
"""

from slack_sdk.errors import SlackApiError


def next_cursor(response) -> str:
    """Cursor for the next page, or '' when the listing is complete"""
    return (response.get('response_metadata') or {}).get('next_cursor') or ''


def error_reason(e: Exception) -> str:
    """Slack's error code for API errors, the message for anything else"""
    if isinstance(e, SlackApiError):
        return e.response.get('error', str(e))
    return str(e)
