"""
Target session entities.

A target is the browser page session the page agent lives in.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class TargetInfo:
    """Snapshot of a target page session."""
    target_id: str
    url: Optional[str]
    loading: bool = False


@dataclass
class LoginState:
    """Login status detected on the target page."""
    is_logged_in: bool
    user_name: Optional[str] = None
    login_timestamp: Optional[datetime] = None
    detected_on_url: Optional[str] = None
