"""
Исключения бота.
"""


class StorageBotError(Exception):
    """Базовое исключение"""


class MalformedInventoryError(StorageBotError):
    """Данные инвентаря Steam не соответствуют ожидаемому формату"""


class GCRequestError(StorageBotError):
    """Запрос к Game Coordinator не выполнен"""
