"""dictsync - dictionary import orchestration and profile settings sync."""

__version__ = "0.1.0"
