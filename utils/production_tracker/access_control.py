# utils/production_tracker/access_control.py
"""
Role-based Access Control for Production Tracker

Roles come from the backend as role_id (1-6) and/or role_name. The role
is resolved once and mapped to a fixed capability set:

- SUPER_ADMIN / ADMIN / PROJECT_MANAGER: full report, team column, manage
- ASSISTANT_MANAGER: full report, manage (no team column)
- QA_AGENT: report and daily QC only
- AGENT: logs own production; deletes own entries on the same day only

Every role sees the billable report; agents only their own rows.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional

import pandas as pd

from .constants import (
    ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_PROJECT_MANAGER,
    ROLE_ASSISTANT_MANAGER, ROLE_QA_AGENT, ROLE_AGENT,
    VIEW_TRACKER, VIEW_TRACKER_REPORT, VIEW_BILLABLE_REPORT,
    VIEW_MANAGE_PROJECTS, VIEW_MANAGE_USERS,
)
from .formatters import calendar_date, id_series, normalize_id, today_in

logger = logging.getLogger(__name__)


class Role(IntEnum):
    SUPER_ADMIN = ROLE_SUPER_ADMIN
    ADMIN = ROLE_ADMIN
    PROJECT_MANAGER = ROLE_PROJECT_MANAGER
    ASSISTANT_MANAGER = ROLE_ASSISTANT_MANAGER
    QA_AGENT = ROLE_QA_AGENT
    AGENT = ROLE_AGENT

    @property
    def label(self) -> str:
        return self.name.replace('_', ' ').title()


# Checked in order: "super admin" contains "admin", "qa agent" contains "agent"
ROLE_NAME_KEYWORDS = [
    (('super',), Role.SUPER_ADMIN),
    (('assistant', 'asst'), Role.ASSISTANT_MANAGER),
    (('project manager',), Role.PROJECT_MANAGER),
    (('qa',), Role.QA_AGENT),
    (('admin',), Role.ADMIN),
    (('agent',), Role.AGENT),
]


@dataclass(frozen=True)
class Capabilities:
    can_log_production: bool = False
    can_view_tracker_report: bool = False
    can_view_billable_report: bool = False
    can_edit_any_tracker: bool = False
    can_manage_projects: bool = False
    can_manage_users: bool = False
    can_enter_daily_qc: bool = False
    can_view_team_column: bool = False


_MANAGER = Capabilities(
    can_view_tracker_report=True,
    can_view_billable_report=True,
    can_edit_any_tracker=True,
    can_manage_projects=True,
    can_manage_users=True,
    can_enter_daily_qc=True,
    can_view_team_column=True,
)

ROLE_CAPABILITIES: Dict[Role, Capabilities] = {
    Role.SUPER_ADMIN: _MANAGER,
    Role.ADMIN: _MANAGER,
    Role.PROJECT_MANAGER: _MANAGER,
    Role.ASSISTANT_MANAGER: Capabilities(
        can_view_tracker_report=True,
        can_view_billable_report=True,
        can_edit_any_tracker=True,
        can_manage_projects=True,
        can_manage_users=True,
        can_enter_daily_qc=True,
    ),
    Role.QA_AGENT: Capabilities(
        can_view_tracker_report=True,
        can_view_billable_report=True,
        can_edit_any_tracker=True,
        can_enter_daily_qc=True,
    ),
    Role.AGENT: Capabilities(can_log_production=True, can_view_billable_report=True),
}

NO_CAPABILITIES = Capabilities()


def resolve_role(role_id: Any = None, role_name: Any = None) -> Optional[Role]:
    """
    Resolve a Role from role_id, falling back to role_name keywords.

    Returns:
        Role, or None when neither identifies a known role
    """
    rid = normalize_id(role_id)
    if rid.isdigit():
        try:
            return Role(int(rid))
        except ValueError:
            logger.warning(f"Unknown role_id {rid}, falling back to role name")

    name = str(role_name or '').strip().lower().replace('_', ' ')
    if name:
        for keywords, role in ROLE_NAME_KEYWORDS:
            if any(k in name for k in keywords):
                return role

    return None


class AccessControl:
    """
    Capabilities of the logged-in user.

    Usage:
        access = AccessControl.from_user(auth.get_current_user(), tz='UTC')

        if access.capabilities.can_view_tracker_report:
            ...

        access.can_delete_tracker(tracker)
        visible_df = access.filter_dataframe(trackers_df)
    """

    def __init__(self, role: Optional[Role], user_id: Any, tz: str = 'UTC'):
        """
        Initialize access control.

        Args:
            role: Resolved Role (None = no access)
            user_id: Logged-in user's id
            tz: Calendar timezone for the same-day delete window
        """
        self.role = role
        self.user_id = normalize_id(user_id)
        self.tz = tz
        self.capabilities = ROLE_CAPABILITIES.get(role, NO_CAPABILITIES) if role else NO_CAPABILITIES

        logger.info(f"AccessControl initialized: role={role.name if role else None}, user_id={self.user_id}")

    @classmethod
    def from_user(cls, user: Optional[Dict], tz: str = 'UTC') -> 'AccessControl':
        user = user or {}
        role = resolve_role(user.get('role_id'), user.get('role_name') or user.get('role'))
        return cls(role, user.get('user_id'), tz=tz)

    @property
    def role_label(self) -> str:
        return self.role.label if self.role else 'Unknown'

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def nav_items(self) -> List[str]:
        """Screens visible to this role, in menu order."""
        items = []
        if self.capabilities.can_log_production:
            items.append(VIEW_TRACKER)
        if self.capabilities.can_view_tracker_report:
            items.append(VIEW_TRACKER_REPORT)
        if self.capabilities.can_view_billable_report:
            items.append(VIEW_BILLABLE_REPORT)
        if self.capabilities.can_manage_projects:
            items.append(VIEW_MANAGE_PROJECTS)
        if self.capabilities.can_manage_users:
            items.append(VIEW_MANAGE_USERS)
        return items

    def can_access(self, view: str) -> bool:
        return view in self.nav_items()

    # =========================================================================
    # TRACKER PERMISSIONS
    # =========================================================================

    def is_owner(self, tracker: Dict) -> bool:
        return bool(self.user_id) and normalize_id(tracker.get('user_id')) == self.user_id

    def can_edit_tracker(self, tracker: Dict) -> bool:
        return self.capabilities.can_edit_any_tracker

    def can_delete_tracker(self, tracker: Dict, now: Optional[datetime] = None) -> bool:
        """
        Whether the delete action is offered for a tracker entry.

        Privileged roles may always delete. Agents may delete their own
        entries only on the calendar day (in self.tz) the entry was made.
        """
        if self.capabilities.can_edit_any_tracker:
            return True
        if not self.is_owner(tracker):
            return False

        entry_day = calendar_date(tracker.get('date_time'), self.tz)
        if entry_day is None:
            return False

        today = calendar_date(now, self.tz) if now is not None else today_in(self.tz)
        return entry_day == today

    # =========================================================================
    # DATA FILTERING
    # =========================================================================

    def filter_dataframe(self, df: pd.DataFrame, id_column: str = 'user_id') -> pd.DataFrame:
        """Report roles see every row; everyone else only their own."""
        if df.empty or self.capabilities.can_view_tracker_report:
            return df
        if not self.user_id:
            return df.iloc[0:0]
        return df[id_series(df, id_column) == self.user_id]
