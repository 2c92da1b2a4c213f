# utils/production_tracker/validators.py
"""
Form validation for Production Tracker.

Every validate_* method returns a {field: message} dict; an empty dict
means the form may be submitted. Messages are shown inline next to the
field and nothing invalid is sent to the backend.
"""
import logging
from typing import Any, Dict, Optional

from .constants import (
    ALLOWED_TRACKER_FILE_TYPES,
    DEFAULT_MAX_FILE_SIZE_MB,
    MAX_ASSIGN_HOURS,
    MAX_NOTE_LENGTH,
    MAX_QC_SCORE,
    SHIFT_TYPES,
)
from .formatters import to_optional_number
from .metrics import production_ceiling

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_shift(value: Any) -> Optional[str]:
    """'Day', 'DAY SHIFT', ' night ' -> 'day' / 'night'; anything else -> None."""
    text = str(value or '').strip().lower()
    for shift in SHIFT_TYPES:
        if text == shift or text.startswith(f"{shift} "):
            return shift
    return None


class TrackerValidator:
    """Validator for tracker, daily QC, project and task forms"""

    def __init__(self, max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB):
        self.max_file_size_mb = max_file_size_mb

    # ==================== Tracker Entry ====================

    def validate_tracker_entry(self, form: Dict) -> Dict[str, str]:
        """
        Validate the add/edit tracker form.

        Expected keys: project_id, task_id, shift, base_target, production,
        tracker_note (optional).
        """
        errors = {}

        if _is_blank(form.get('project_id')):
            errors['project_id'] = "Project is required."
        if _is_blank(form.get('task_id')):
            errors['task_id'] = "Task is required."
        if normalize_shift(form.get('shift')) is None:
            errors['shift'] = "Shift Type is required."

        base_target = to_optional_number(form.get('base_target'))
        if not base_target:
            errors['base_target'] = "Base Target is required."

        production = form.get('production')
        if _is_blank(production):
            errors['production'] = "Production Target is required."
        else:
            value = to_optional_number(production)
            if value is None or value < 0:
                errors['production'] = "Enter a valid number."
            elif base_target:
                ceiling = production_ceiling(base_target)
                if value > ceiling:
                    errors['production'] = (
                        f"Production cannot exceed {ceiling:.2f} (double of base target)."
                    )

        note = form.get('tracker_note') or ''
        if len(str(note)) > MAX_NOTE_LENGTH:
            errors['tracker_note'] = f"Note cannot exceed {MAX_NOTE_LENGTH} characters."

        if errors:
            logger.debug(f"Tracker entry rejected: {sorted(errors)}")
        return errors

    # ==================== Attachments ====================

    def validate_file(
        self,
        file_name: Optional[str],
        size: Optional[int],
        mime_type: Optional[str] = None,
        is_update: bool = False
    ) -> Dict[str, str]:
        """
        Validate an attachment before upload.

        Size is always capped; the type whitelist (Excel, PDF, Word, CSV)
        applies to edits of an existing entry.
        """
        if not file_name:
            return {}

        if (size or 0) > self.max_file_size_mb * 1024 * 1024:
            return {'tracker_file': f"File size must be less than {self.max_file_size_mb}MB."}

        if is_update and mime_type not in ALLOWED_TRACKER_FILE_TYPES:
            return {'tracker_file': "Only Excel, PDF, Word, and CSV files are allowed."}

        return {}

    # ==================== Daily QC ====================

    def validate_daily_entry(self, assign_hours: Any = None, qc_score: Any = None) -> Dict[str, str]:
        """Both fields are optional; when given they must be in range."""
        errors = {}

        if not _is_blank(assign_hours):
            hours = to_optional_number(assign_hours)
            if hours is None or hours < 0:
                errors['assign_hours'] = "Must be a non-negative number"
            elif hours > MAX_ASSIGN_HOURS:
                errors['assign_hours'] = f"Cannot exceed {MAX_ASSIGN_HOURS} hours"

        if not _is_blank(qc_score):
            score = to_optional_number(qc_score)
            if score is None or score < 0:
                errors['qc_score'] = "Must be a non-negative number"
            elif score > MAX_QC_SCORE:
                errors['qc_score'] = f"Cannot exceed {MAX_QC_SCORE}"

        return errors

    # ==================== Projects & Tasks ====================

    def validate_project(self, form: Dict) -> Dict[str, str]:
        errors = {}
        if _is_blank(form.get('project_name')):
            errors['project_name'] = "Project name is required."
        return errors

    def validate_task(self, form: Dict) -> Dict[str, str]:
        errors = {}
        if _is_blank(form.get('project_id')):
            errors['project_id'] = "Project is required."
        if _is_blank(form.get('task_name')):
            errors['task_name'] = "Task name is required."

        target = to_optional_number(form.get('task_target'))
        if target is None or target <= 0:
            errors['task_target'] = "Task target must be a number greater than 0."
        if 'task_team_id' in form and not form.get('task_team_id'):
            errors['task_team_id'] = "Select at least one agent."
        return errors
