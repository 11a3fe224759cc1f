"""
JSON file archive for finished interview sessions.
"""
import os
import json
import logging
from typing import Dict, List, Optional, Any

from ...interview.models import Session

logger = logging.getLogger("session_archive")


class SessionArchive:
    """
    Stores session snapshots as ``<archive_dir>/<session_id>.json``.

    Only finished sessions, or sessions whose finalization failed, are
    archived. Stored snapshots are plain data and are never turned back into
    a live Session.
    """

    def __init__(self, archive_dir: str = "./_interviews/sessions"):
        self.archive_dir = archive_dir
        os.makedirs(self.archive_dir, exist_ok=True)

    def _get_session_path(self, session_id: str) -> str:
        return os.path.join(self.archive_dir, f"{session_id}.json")

    def save(self, session: Session) -> str:
        """
        Write a session snapshot to disk.

        Returns:
            Path of the written file

        Raises:
            ValueError: If the session is still running normally
        """
        if not session.is_finished and not session.finalization_failed:
            raise ValueError(f"Session {session.session_id} is still in progress")

        path = self._get_session_path(session.session_id)
        tmp_path = path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(session.snapshot(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

        logger.info(f"Archived session {session.session_id} to {path}")
        return path

    def load(self, session_id: str) -> Dict[str, Any]:
        """Read one snapshot; raises FileNotFoundError if it was never archived."""
        with open(self._get_session_path(session_id), 'r', encoding='utf-8') as f:
            return json.load(f)

    def list_sessions(self, domain: Optional[str] = None, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Return archived snapshots, optionally filtered by domain and level.

        Snapshots are ordered by start time; unreadable files are skipped.
        """
        sessions = []
        for filename in os.listdir(self.archive_dir):
            if not filename.endswith('.json'):
                continue
            try:
                data = self.load(filename[:-5])
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to read archived session {filename}: {e}")
                continue
            if domain is not None and data.get("domain") != domain:
                continue
            if level is not None and data.get("level") != level:
                continue
            sessions.append(data)

        sessions.sort(key=lambda s: s.get("started_at") or "")
        return sessions
