# utils/production_tracker/queries.py
"""
Backend Data Access for Production Tracker

Wraps every REST endpoint the dashboard uses:
- Trackers: /tracker/view, /tracker/add, /tracker/update, /tracker/delete
- Dropdowns: /dropdown/get (cached per session for CACHE_TTL_SECONDS)
- Projects: /project/create, /project/update, /project/list, /project/delete
- Tasks: /task/add, /task/update, /task/list, PUT /task/delete
- Daily QC: /qc/temp-qc
- Billable reports: /tracker/view_daily, /user_monthly_tracker/list
- Users: /user/list, /user/update_user; task assignment via /task/update

Transport failures surface as utils.api.ApiError; pages catch it and show
its friendly_message once. Nothing is retried.
"""

import json
import logging
import threading
import time
from datetime import date
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Tuple

import pandas as pd

from utils.api import ApiError, api_request
from utils.config import config

from .constants import (
    CACHE_KEY_PREFIX,
    DROPDOWN_AGENT,
    DROPDOWN_PROJECTS_WITH_TASKS,
    DROPDOWN_TEAMS,
    TASK_UPDATE_FIELDS,
)
from .billable import month_year_label
from .formatters import to_tracker_frame, today_in
from .users import as_id_list, toggle_team_member

logger = logging.getLogger(__name__)

# (filename, bytes, mime type)
FileUpload = Tuple[str, bytes, str]


def _as_list(value: Any) -> List:
    return value if isinstance(value, list) else []


def _form_fields(record: Dict) -> Dict[str, Any]:
    """Lists (id lists, important columns) are sent as JSON arrays."""
    return {
        key: json.dumps(list(value)) if isinstance(value, (list, tuple)) else value
        for key, value in record.items()
    }


def _multipart(fields: Dict[str, Any], file_field: str = None, upload: Optional[FileUpload] = None) -> Dict:
    """
    Multipart body for requests' `files=`.

    Plain fields are sent as (None, value) parts so the request is
    multipart/form-data even without an attachment. None values are left out.
    """
    parts = {
        key: (None, str(value))
        for key, value in fields.items()
        if value is not None and value != ''
    }
    if file_field and upload:
        parts[file_field] = upload
    return parts


# =============================================================================
# STALE RESPONSE GUARD
# =============================================================================

class LatestSnapshot:
    """
    Keeps only the result of the most recently started fetch.

    Usage:
        snapshot = LatestSnapshot()

        token = snapshot.issue()
        try:
            snapshot.accept(token, fetch(...))
        except ApiError:
            snapshot.discard(token)

        if snapshot.value is not None:
            render(snapshot.value)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0
        self._accepted = 0
        self.value = None

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def accept(self, token: int, value: Any) -> bool:
        """Store `value` if `token` is the newest issued; older results are dropped."""
        with self._lock:
            if token != self._latest or token <= self._accepted:
                logger.warning(f"Discarding stale response (token {token}, latest {self._latest})")
                return False
            self._accepted = token
            self.value = value
            return True

    def discard(self, token: int) -> bool:
        """
        Forget the held value after fetch `token` failed.

        Only the newest fetch may clear it; a late failure of an older
        fetch leaves the newer value in place.
        """
        with self._lock:
            if token != self._latest:
                return False
            self._accepted = token
            self.value = None
            return True

    @property
    def latest_token(self) -> int:
        return self._latest


# =============================================================================
# QUERIES
# =============================================================================

class TrackerQueries:
    """
    Data loading class for the production tracker.

    Usage:
        queries = TrackerQueries(
            user_id=auth.get_user_id(),
            token=auth.get_token(),
            cache=st.session_state,
        )

        trackers_df = queries.get_trackers(date_from, date_to)
        projects = queries.get_projects_with_tasks()
    """

    def __init__(
        self,
        user_id: Any,
        token: Optional[str] = None,
        cache: Optional[MutableMapping] = None,
        request: Callable[..., Dict] = api_request,
        clock: Callable[[], float] = time.monotonic,
        ttl_seconds: Optional[int] = None
    ):
        """
        Args:
            user_id: Logged-in user's id (sent as logged_in_user_id)
            token: Bearer token from login
            cache: Mapping used for the dropdown cache (st.session_state in pages)
            request: Request function, api_request unless a test replaces it
            clock: Time source for cache expiry
            ttl_seconds: Dropdown cache lifetime (CACHE_TTL_SECONDS if None)
        """
        self.user_id = user_id
        self.token = token
        self.cache = cache if cache is not None else {}
        self._request = request
        self._clock = clock
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.get_app_setting("CACHE_TTL_SECONDS", 300)

        api_config = config.get_api_config()
        self.device_id = api_config['device_id']
        self.device_type = api_config['device_type']

    def _post(self, path: str, **kwargs) -> Dict:
        return self._request('POST', path, token=self.token, **kwargs)

    def _put(self, path: str, **kwargs) -> Dict:
        return self._request('PUT', path, token=self.token, **kwargs)

    # =========================================================================
    # TRACKERS
    # =========================================================================

    def get_trackers(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        project_id: Any = None,
        task_id: Any = None,
        tz: str = 'UTC'
    ) -> pd.DataFrame:
        """
        Load trackers for a date range (today when no range is given).

        The backend's own month_summary is not used; monthly figures are
        computed from the entries by TrackerMetrics in TIMEZONE.
        """
        if not date_from and not date_to:
            date_from = date_to = today_in(tz)

        payload = {
            'logged_in_user_id': self.user_id,
            'device_id': self.device_id,
            'device_type': self.device_type,
        }
        if date_from:
            payload['date_from'] = str(date_from)
        if date_to:
            payload['date_to'] = str(date_to)
        if project_id:
            payload['project_id'] = project_id
        if task_id:
            payload['task_id'] = task_id

        body = self._post('/tracker/view', json=payload)
        data = body.get('data') if isinstance(body.get('data'), dict) else {}

        trackers = _as_list(data.get('trackers'))
        logger.info(f"Loaded {len(trackers)} trackers ({date_from} to {date_to})")

        return to_tracker_frame(trackers)

    def add_tracker(self, entry: Dict, upload: Optional[FileUpload] = None) -> Dict:
        """
        Create a tracker entry (multipart).

        Args:
            entry: project_id, task_id, shift, user_id, production,
                tenure_target, tracker_note
            upload: Optional attachment
        """
        fields = {
            'project_id': entry.get('project_id'),
            'task_id': entry.get('task_id'),
            'shift': entry.get('shift'),
            'user_id': entry.get('user_id', self.user_id),
            'production': entry.get('production'),
            'tenure_target': entry.get('tenure_target'),
            'tracker_note': (entry.get('tracker_note') or '').strip() or None,
        }
        body = self._post('/tracker/add', files=_multipart(fields, 'tracker_file', upload))
        logger.info(f"Tracker added for user {fields['user_id']} (task {fields['task_id']})")
        return body

    def update_tracker(self, tracker_id: Any, entry: Dict, upload: Optional[FileUpload] = None) -> Dict:
        """Update a tracker entry; `base_target` travels with the entry."""
        fields = {
            'tracker_id': tracker_id,
            'project_id': entry.get('project_id'),
            'task_id': entry.get('task_id'),
            'shift': entry.get('shift'),
            'user_id': entry.get('user_id'),
            'production': entry.get('production'),
            'base_target': entry.get('base_target'),
            'tracker_note': (entry.get('tracker_note') or '').strip() or None,
        }
        body = self._post('/tracker/update', files=_multipart(fields, 'tracker_file', upload))
        logger.info(f"Tracker {tracker_id} updated")
        return body

    def delete_tracker(self, tracker_id: Any) -> Dict:
        body = self._post('/tracker/delete', json={'tracker_id': tracker_id})
        logger.info(f"Tracker {tracker_id} deleted")
        return body

    # =========================================================================
    # DROPDOWNS (cached)
    # =========================================================================

    def _dropdown_key(self, dropdown_type: str, project_id: Any = None) -> str:
        suffix = f"_{project_id}" if project_id else ''
        return f"{CACHE_KEY_PREFIX}dropdown_{dropdown_type.replace(' ', '_')}{suffix}"

    def get_dropdown(self, dropdown_type: str, project_id: Any = None, use_cache: bool = True) -> List[Dict]:
        """
        Fetch a /dropdown/get list, served from the session cache while fresh.
        """
        key = self._dropdown_key(dropdown_type, project_id)
        now = self._clock()

        cached = self.cache.get(key) if use_cache else None
        if cached and now - cached[0] < self.ttl_seconds:
            return cached[1]

        payload = {'dropdown_type': dropdown_type, 'logged_in_user_id': self.user_id}
        if project_id:
            payload['project_id'] = project_id

        data = _as_list(self._post('/dropdown/get', json=payload).get('data'))
        self.cache[key] = (now, data)
        logger.info(f"Loaded dropdown '{dropdown_type}': {len(data)} items")
        return data

    def get_projects_with_tasks(self) -> List[Dict]:
        return self.get_dropdown(DROPDOWN_PROJECTS_WITH_TASKS)

    def get_agents(self) -> List[Dict]:
        return self.get_dropdown(DROPDOWN_AGENT)

    def invalidate_dropdowns(self):
        prefix = f"{CACHE_KEY_PREFIX}dropdown_"
        for key in [k for k in list(self.cache.keys()) if str(k).startswith(prefix)]:
            del self.cache[key]
        logger.debug("Dropdown cache cleared")

    # =========================================================================
    # PROJECTS
    # =========================================================================

    def list_projects(self) -> List[Dict]:
        body = self._post('/project/list', json={'logged_in_user_id': self.user_id})
        return _as_list(body.get('data'))

    def create_project(self, project: Dict, uploads: Optional[List[FileUpload]] = None) -> Dict:
        """
        Create a project (multipart).

        Args:
            project: project_name, project_code, project_description,
                project_manager_id, asst_project_manager_id[],
                project_qa_id[], project_team_id[]
            uploads: Optional project files
        """
        body = self._post('/project/create', files=self._project_parts(project, uploads))
        self.invalidate_dropdowns()
        logger.info(f"Project created: {project.get('project_name')}")
        return body

    def update_project(self, project_id: Any, project: Dict, uploads: Optional[List[FileUpload]] = None) -> Dict:
        parts = self._project_parts({**project, 'project_id': project_id}, uploads)
        body = self._post('/project/update', files=parts)
        self.invalidate_dropdowns()
        logger.info(f"Project {project_id} updated")
        return body

    @staticmethod
    def _project_parts(project: Dict, uploads: Optional[List[FileUpload]]) -> List[Tuple[str, Any]]:
        parts = list(_multipart(_form_fields(project)).items())
        parts += [('file', upload) for upload in uploads or []]
        return parts

    def delete_project(self, project_id: Any) -> Dict:
        body = self._post('/project/delete', json={'project_id': project_id})
        self.invalidate_dropdowns()
        logger.info(f"Project {project_id} deleted")
        return body

    # =========================================================================
    # TASKS
    # =========================================================================

    def list_tasks(self, project_id: Any) -> List[Dict]:
        payload = {
            'project_id': project_id,
            'user_id': self.user_id,
            'device_id': self.device_id,
            'device_type': self.device_type,
        }
        body = self._post('/task/list', json=payload)
        return _as_list(body.get('data'))

    def _task_parts(self, task: Dict, upload: Optional[FileUpload]) -> Dict:
        fields = _form_fields({**task, 'device_id': self.device_id, 'device_type': self.device_type})
        return _multipart(fields, 'task_file', upload)

    def add_task(self, task: Dict, upload: Optional[FileUpload] = None) -> Dict:
        """
        Add a task to a project (multipart).

        Args:
            task: project_id, task_name, task_description, task_target,
                task_team_id[], important_columns[]
            upload: Optional task file
        """
        body = self._post('/task/add', files=self._task_parts(task, upload))
        self.invalidate_dropdowns()
        logger.info(f"Task added to project {task.get('project_id')}: {task.get('task_name')}")
        return body

    def update_task(self, task: Dict, upload: Optional[FileUpload] = None) -> Dict:
        body = self._post('/task/update', files=self._task_parts(task, upload))
        self.invalidate_dropdowns()
        logger.info(f"Task {task.get('task_id')} updated")
        return body

    def delete_task(self, project_id: Any, task_id: Any) -> Dict:
        payload = {
            'project_id': project_id,
            'task_id': task_id,
            'device_id': self.device_id,
            'device_type': self.device_type,
        }
        body = self._put('/task/delete', json=payload)
        self.invalidate_dropdowns()
        logger.info(f"Task {task_id} deleted")
        return body

    # =========================================================================
    # BILLABLE REPORTS
    # =========================================================================

    def get_daily_billable(self, month: date, team_id: Any = None, user_id: Any = None) -> List[Dict]:
        """
        Daily billable rows (one per agent and day) for a calendar month.

        Args:
            month: Any day of the wanted month
            team_id: Limit to one team
            user_id: Limit to one agent (agents only ever see themselves)
        """
        payload = {'logged_in_user_id': self.user_id, 'month_year': month_year_label(month)}
        if team_id:
            payload['team_id'] = team_id
        if user_id:
            payload['user_id'] = user_id

        body = self._post('/tracker/view_daily', json=payload)
        data = body.get('data') if isinstance(body.get('data'), dict) else {}
        rows = _as_list(data.get('trackers'))
        logger.info(f"Loaded {len(rows)} daily billable rows for {payload['month_year']}")
        return rows

    def get_monthly_billable(self, month: Optional[date] = None, user_id: Any = None, tz: str = 'UTC') -> List[Dict]:
        """
        Monthly billable rows (one per agent and month).

        Without `month` the last three calendar months, up to the end of
        the current one, are requested.
        """
        payload = {'logged_in_user_id': self.user_id}
        if month:
            payload['month_year'] = month_year_label(month)
        else:
            today = today_in(tz)
            first = (pd.Timestamp(today.replace(day=1)) - pd.DateOffset(months=2)).date()
            last = (pd.Timestamp(today) + pd.offsets.MonthEnd(0)).date()
            payload['date_from'] = str(first)
            payload['date_to'] = str(last)
        if user_id:
            payload['user_id'] = user_id

        rows = _as_list(self._post('/user_monthly_tracker/list', json=payload).get('data'))
        logger.info(f"Loaded {len(rows)} monthly billable rows")
        return rows

    def get_teams(self) -> List[Dict]:
        return self.get_dropdown(DROPDOWN_TEAMS)

    # =========================================================================
    # USERS
    # =========================================================================

    def list_users(self) -> List[Dict]:
        payload = {
            'user_id': str(self.user_id),
            'device_id': self.device_id,
            'device_type': self.device_type,
        }
        return _as_list(self._post('/user/list', json=payload).get('data'))

    def set_user_active(self, user_id: Any, active: bool) -> Dict:
        fields = {
            'user_id': user_id,
            'device_id': self.device_id,
            'device_type': self.device_type,
            'is_active': 1 if active else 0,
        }
        body = self._post('/user/update_user', files=_multipart(fields))
        logger.info(f"User {user_id} {'activated' if active else 'deactivated'}")
        return body

    def assign_task(self, task: Dict, user_id: Any, assigned: bool) -> Dict:
        """
        Add `user_id` to (or remove it from) a task's team.

        The task's other fields are sent back unchanged.
        """
        fields = {key: task.get(key) for key in TASK_UPDATE_FIELDS if task.get(key) is not None}
        if 'important_columns' in fields:
            fields['important_columns'] = as_id_list(fields['important_columns'])
        fields['task_team_id'] = toggle_team_member(task.get('task_team_id'), user_id, assigned)
        return self.update_task(fields)

    # =========================================================================
    # DAILY QC
    # =========================================================================

    def save_daily_qc(
        self,
        user_id: Any,
        entry_date: date,
        assign_hours: Any = None,
        qc_score: Any = None
    ) -> Dict:
        """Save assigned hours / QC score for one agent on one day."""
        payload = {'user_id': user_id, 'date': str(entry_date)}
        if assign_hours not in (None, ''):
            payload['assigned_hours'] = float(assign_hours)
        if qc_score not in (None, ''):
            payload['qc_score'] = float(qc_score)

        body = self._post('/qc/temp-qc', json=payload)
        logger.info(f"Daily QC saved for user {user_id} on {entry_date}")
        return body


__all__ = [
    'ApiError',
    'FileUpload',
    'LatestSnapshot',
    'TrackerQueries',
]
