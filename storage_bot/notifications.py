"""
Канал уведомлений от Steam клиента и Game Coordinator.
"""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

from loguru import logger
# Коды уведомлений GC (CasketAdded, CasketInvFull, ...) берем из steamio
from steam.ext.csgo.enums import ItemCustomizationNotification


class BusEvent(Enum):
    """Типы событий в шине"""
    READY = "ready"
    ITEM_CUSTOMIZATION = "item_customization"
    ERROR = "error"


@dataclass(frozen=True)
class CustomizationEvent:
    """Уведомление об изменении предмета"""
    item_ids: List[int]
    notification_type: ItemCustomizationNotification


class NotificationBus:
    """
    Простая шина событий.

    Обработчики вызываются в порядке подписки, могут быть
    обычными функциями или корутинами.
    """

    def __init__(self):
        self._handlers: Dict[BusEvent, List[Callable]] = {event: [] for event in BusEvent}

    def subscribe(self, event: BusEvent, handler: Callable):
        self._handlers[event].append(handler)

    async def publish(self, event: BusEvent, *args):
        for handler in list(self._handlers[event]):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Handler {getattr(handler, '__name__', handler)} failed on {event.value}: {e}")
