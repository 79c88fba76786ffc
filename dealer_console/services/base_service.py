"""
Base class for the console services.

A service borrows the caller's session (tests, request handlers that
coordinate several services) or opens one from the global database manager.
Only an owned session is closed by the service; the CRUD helpers commit
each write themselves.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..config import AppConfig, get_config
from ..db.db_config import get_db_manager
from ..utils.logger import ContextAwareLogger, get_logger


class SessionManagedService:
    """Service bound to one database session and one configuration."""

    def __init__(
        self,
        session: Optional[Session] = None,
        logger: Optional[ContextAwareLogger] = None,
        config: Optional[AppConfig] = None,
    ):
        """
        Args:
            session: Session to borrow; a new one is opened when omitted
            logger: Defaults to the configured console logger
            config: Defaults to the global configuration
        """
        self._owns_session = session is None
        self.session = get_db_manager().session_factory() if session is None else session
        self.logger = logger or get_logger()
        self.config = config or get_config()

    @property
    def owns_session(self) -> bool:
        return self._owns_session

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self._owns_session:
            self.session.rollback()
        self.close()
