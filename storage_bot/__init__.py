"""
CSGO Storage Bot.
Перемещение предметов в Storage Unit и обратно через Game Coordinator.
"""

__version__ = "0.1.0"
