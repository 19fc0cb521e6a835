"""
Diff utilities for the shop admin console.
Compares the loaded record with the edited one using DeepDiff so the user
can review pending changes before saving.
"""

import json
import logging
from typing import Dict, Any, List, Optional

from deepdiff import DeepDiff
from deepdiff.helper import notpresent

logger = logging.getLogger(__name__)

CHANGE_KINDS = {
    'values_changed': 'modified',
    'type_changes': 'modified',
    'dictionary_item_added': 'added',
    'iterable_item_added': 'added',
    'dictionary_item_removed': 'removed',
    'iterable_item_removed': 'removed',
}

CHANGE_BADGES = {
    'modified': '🟡',
    'added': '🟢',
    'removed': '🔴',
}


def _join_path(tokens: List[Any]) -> str:
    """Dot path for display, list indices as [n]."""
    parts: List[str] = []
    for token in tokens:
        if isinstance(token, int):
            if parts:
                parts[-1] += f"[{token}]"
            else:
                parts.append(f"[{token}]")
        else:
            parts.append(str(token))
    return ".".join(parts) or "root"


def _present(value: Any) -> Any:
    return None if value is notpresent else value


def calculate_diff(original: Optional[Dict[str, Any]], modified: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Calculate the differences between two records.

    Args:
        original: Record as loaded
        modified: Record as edited

    Returns:
        List of changes: {'path', 'change', 'old', 'new'} sorted by path
    """
    try:
        diff = DeepDiff(original or {}, modified or {}, verbose_level=2, view='tree')
    except Exception as e:
        logger.error(f"Error calculating diff: {e}", exc_info=True)
        return []

    changes: List[Dict[str, Any]] = []
    for report_type, levels in diff.items():
        change = CHANGE_KINDS.get(report_type)
        if change is None:
            logger.debug(f"[calculate_diff] Ignoring report type {report_type}")
            continue
        for level in levels:
            changes.append({
                'path': _join_path(level.path(output_format='list')),
                'change': change,
                'old': _present(level.t1),
                'new': _present(level.t2),
            })

    changes.sort(key=lambda c: c['path'])
    logger.debug(f"[calculate_diff] {len(changes)} change(s)")
    return changes


def has_changes(changes: List[Dict[str, Any]]) -> bool:
    return bool(changes)


def get_change_summary(changes: List[Dict[str, Any]]) -> Dict[str, int]:
    """Count changes by kind."""
    summary = {'modified': 0, 'added': 0, 'removed': 0, 'total': 0}
    for change in changes:
        summary[change['change']] += 1
    summary['total'] = len(changes)
    return summary


def _format_value(value: Any, max_length: int = 80) -> str:
    if value is None:
        return "None"
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length - 3]}..."
    return text


def format_diff_for_display(changes: List[Dict[str, Any]]) -> str:
    """Markdown listing of the changes."""
    if not changes:
        return "No changes detected"

    lines = []
    for change in changes:
        badge = CHANGE_BADGES[change['change']]
        path = change['path']
        if change['change'] == 'modified':
            lines.append(f"- {badge} **{path}**: `{_format_value(change['old'])}` → `{_format_value(change['new'])}`")
        elif change['change'] == 'added':
            lines.append(f"- {badge} **{path}**: `{_format_value(change['new'])}`")
        else:
            lines.append(f"- {badge} **{path}**: ~~`{_format_value(change['old'])}`~~")
    return "\n".join(lines)
