"""
Storage for finished interview sessions.
"""

from .archive import SessionArchive

__all__ = ['SessionArchive']
