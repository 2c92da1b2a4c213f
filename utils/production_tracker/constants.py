# utils/production_tracker/constants.py
"""
Constants for Production Tracker Module

Centralized configuration for:
- Role definitions
- Tracker record schema
- Validation limits
- Color schemes and chart settings
- Export settings
"""

# =====================================================================
# ROLE DEFINITIONS (role_id values sent by the backend)
# =====================================================================

ROLE_SUPER_ADMIN = 1
ROLE_ADMIN = 2
ROLE_PROJECT_MANAGER = 3
ROLE_ASSISTANT_MANAGER = 4
ROLE_QA_AGENT = 5
ROLE_AGENT = 6

# Screens shown in navigation
VIEW_TRACKER = 'tracker'
VIEW_TRACKER_REPORT = 'tracker_report'
VIEW_BILLABLE_REPORT = 'billable_report'
VIEW_MANAGE_PROJECTS = 'manage_projects'
VIEW_MANAGE_USERS = 'manage_users'

VIEW_LABELS = {
    VIEW_TRACKER: "Tracker",
    VIEW_TRACKER_REPORT: "Tracker Report",
    VIEW_BILLABLE_REPORT: "Billable Report",
    VIEW_MANAGE_PROJECTS: "Manage Projects",
    VIEW_MANAGE_USERS: "Manage Users",
}

VIEW_PAGES = {
    VIEW_TRACKER: "pages/1_📝_Production_Tracker.py",
    VIEW_TRACKER_REPORT: "pages/2_📋_Tracker_Report.py",
    VIEW_MANAGE_PROJECTS: "pages/3_🗂️_Manage_Projects.py",
    VIEW_BILLABLE_REPORT: "pages/4_💼_Billable_Report.py",
    VIEW_MANAGE_USERS: "pages/5_👥_Manage_Users.py",
}

# =====================================================================
# TRACKER RECORD SCHEMA
# =====================================================================

TRACKER_COLUMNS = [
    'tracker_id',
    'user_id', 'user_name',
    'project_id', 'project_name',
    'task_id', 'task_name',
    'shift',
    'date_time',
    'tenure_target',
    'production',
    'billable_hours',
    'tracker_note',
    'tracker_file',
]

# Kept as object columns so ints with gaps are not upcast to float
ID_COLUMNS = ['tracker_id', 'user_id', 'project_id', 'task_id']

# Summed by the aggregator; missing/non-numeric values count as 0
NUMERIC_COLUMNS = ['tenure_target', 'production', 'billable_hours']

SHIFT_TYPES = ['day', 'night']

# Fallback order for a task's per-hour target
TASK_TARGET_KEYS = ['task_target', 'per_hour_target', 'target']

# =====================================================================
# VALIDATION LIMITS
# =====================================================================

MAX_NOTE_LENGTH = 200

# Production may not exceed this multiple of the base target
PRODUCTION_CEILING_MULTIPLIER = 2

DEFAULT_MAX_FILE_SIZE_MB = 10

ALLOWED_TRACKER_FILE_TYPES = [
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-excel',
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'text/csv',
]

MAX_ASSIGN_HOURS = 24
MAX_QC_SCORE = 100

# Task fields carried over when only the team of a task changes
TASK_UPDATE_FIELDS = ['project_id', 'task_id', 'task_name', 'task_description', 'task_target', 'important_columns']

# =====================================================================
# DROPDOWN TYPES (/dropdown/get)
# =====================================================================

DROPDOWN_PROJECTS_WITH_TASKS = 'projects with tasks'
DROPDOWN_AGENT = 'agent'
DROPDOWN_PROJECT_MANAGER = 'project manager'
DROPDOWN_ASSISTANT_MANAGER = 'assistant manager'
DROPDOWN_QA = 'qa'
DROPDOWN_TEAMS = 'teams'

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "tenure_target": "#1f77b4",        # Blue
    "production": "#2ca02c",           # Green
    "billable_hours": "#800080",       # Purple
    "achievement_good": "#28a745",     # Green (>=100%)
    "achievement_bad": "#dc3545",      # Red (<100%)
    "text_dark": "#333333",
    "text_light": "#999999",
    "grid": "#e0e0e0",
}

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_HEIGHT = 360

# =====================================================================
# CACHE SETTINGS
# =====================================================================

CACHE_KEY_PREFIX = 'pt_'
CACHE_KEY_TRACKERS = 'pt_trackers_snapshot'

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "total_fill_color": "D9E1F2",
    "number_format": '#,##0.00',
}

EXPORT_COLUMNS = [
    # (header, width)
    ('Date/Time', 18),
    ('Agent', 22),
    ('Project', 20),
    ('Task', 25),
    ('Per Hour Target', 15),
    ('Production', 12),
    ('Billable Hours', 15),
    ('Has File', 10),
]
