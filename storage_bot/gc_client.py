"""
Steam клиент с подключением к CSGO Game Coordinator (steam.py / steamio).
Операции со Storage Unit (в терминах GC - casket).
"""

import asyncio
import functools
from typing import List, Optional, Set

import steam
from steam.ext import csgo
from loguru import logger

from .errors import GCRequestError
from .notifications import BusEvent, CustomizationEvent, ItemCustomizationNotification, NotificationBus
from .session import SessionGate


class StorageClient(csgo.Client):
    """
    CSGO клиент, публикующий события в NotificationBus.

    add_to_casket / remove_from_casket не ждут ответа GC: запрос
    уходит фоновой задачей, результат приходит уведомлением.
    """

    # Вместимость одного Storage Unit
    CASKET_CAPACITY = 1000

    def __init__(self, gate: SessionGate, notification_bus: NotificationBus, **options):
        super().__init__(**options)
        self.gate = gate
        self.notification_bus = notification_bus
        self._pending: Set[asyncio.Task] = set()

    def start(self, username: str, password: str, shared_secret: Optional[str] = None) -> asyncio.Task:
        """Вход в Steam в фоне. Возвращает задачу клиента."""
        return asyncio.create_task(
            self.login(username, password, shared_secret=shared_secret)
        )

    async def close(self):
        """Отмена неотвеченных запросов к GC и выход из Steam"""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await super().close()

    @property
    def steam_id64(self) -> str:
        return str(self.user.id64)

    # События клиента

    async def on_login(self):
        logger.info("Logged into Steam")
        self.gate.mark_logged_in()
        await self.change_presence(app=steam.CSGO)

    async def on_gc_ready(self):
        logger.info("Connected to CSGO Game Coordinator")
        self.gate.mark_gc_connected()
        await self.notification_bus.publish(BusEvent.READY)

    async def on_error(self, event: str, error: Exception, *args, **kwargs):
        logger.error(f"Steam client error in {event}: {error}")
        await self.notification_bus.publish(BusEvent.ERROR, error)

    # Запросы к GC

    def add_to_casket(self, unit_id: int, asset_id: int):
        """Отправка предмета в Storage Unit без ожидания ответа"""
        self._dispatch(self._add_to_casket(unit_id, asset_id), f"add {asset_id} to casket {unit_id}")

    def remove_from_casket(self, unit_id: int, asset_id: int):
        """Извлечение предмета из Storage Unit без ожидания ответа"""
        self._dispatch(self._remove_from_casket(unit_id, asset_id), f"remove {asset_id} from casket {unit_id}")

    async def get_casket_contents(self, unit_id: int) -> List[int]:
        """
        ID предметов внутри Storage Unit.

        Raises:
            GCRequestError: Storage Unit не найден или GC вернул ошибку
        """
        casket = await self._get_casket(unit_id)
        try:
            contents = await casket.contents()
        except Exception as e:
            raise GCRequestError(f"Failed to get contents of casket {unit_id}: {e}") from e
        return [item.id for item in contents]

    async def _get_casket(self, unit_id: int, backpack=None) -> csgo.Casket:
        if backpack is None:
            backpack = await self.user.inventory(steam.CSGO)
        casket = steam.utils.get(backpack, id=unit_id)
        if not isinstance(casket, csgo.Casket):
            raise GCRequestError(f"Casket {unit_id} not found in backpack")
        return casket

    async def _add_to_casket(self, unit_id: int, asset_id: int):
        backpack = await self.user.inventory(steam.CSGO)
        casket = await self._get_casket(unit_id, backpack)
        item = steam.utils.get(backpack, id=asset_id)
        if item is None:
            raise GCRequestError(f"Item {asset_id} not found in backpack")

        # На add в полный casket GC не отвечает
        if casket.contained_item_count >= self.CASKET_CAPACITY:
            logger.warning(f"Casket {unit_id} is full, item {asset_id} not sent")
            await self._notify(unit_id, ItemCustomizationNotification.CasketTooFull)
            return

        await casket.add(item)
        await self._notify(unit_id, ItemCustomizationNotification.CasketAdded)

    async def _remove_from_casket(self, unit_id: int, asset_id: int):
        casket = await self._get_casket(unit_id)
        contents = await casket.contents()
        item = steam.utils.get(contents, id=asset_id)
        if item is None:
            raise GCRequestError(f"Item {asset_id} is not in casket {unit_id}")

        await casket.remove(item)
        await self._notify(unit_id, ItemCustomizationNotification.CasketRemoved)

    async def _notify(self, unit_id: int, notification: ItemCustomizationNotification):
        await self.notification_bus.publish(
            BusEvent.ITEM_CUSTOMIZATION,
            CustomizationEvent(item_ids=[unit_id], notification_type=notification)
        )

    def _dispatch(self, coro, description: str):
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_dispatch_done, description))

    def _on_dispatch_done(self, description: str, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            logger.warning(f"GC request cancelled: {description}")
        elif task.exception() is not None:
            logger.error(f"GC request failed: {description}: {task.exception()}")
        else:
            logger.debug(f"GC request acknowledged: {description}")
