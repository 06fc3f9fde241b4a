"""
Проверка готовности: вход в Steam и активная сессия с Game Coordinator.
"""

from loguru import logger

from .models import SessionState


class SessionGate:
    """
    Пропускает операции только после входа в Steam и подключения к GC.
    Флаги выставляются событиями клиента и обратно не сбрасываются.
    """

    def __init__(self, state: SessionState = None):
        self.state = state or SessionState()

    def mark_logged_in(self):
        self.state.logged_in = True

    def mark_gc_connected(self):
        self.state.gc_connected = True

    def is_ready(self) -> bool:
        if not self.state.logged_in:
            logger.warning("Not logged in")
        elif not self.state.gc_connected:
            logger.warning("Not connected to GC")

        return self.state.logged_in and self.state.gc_connected
