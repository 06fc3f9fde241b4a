"""
Storage Helper - перемещение предметов в Storage Unit и обратно.
Координирует загрузку инвентаря, поиск Storage Unit и запросы к GC.
"""

import asyncio
from typing import Optional, Dict, Any, List, Tuple

from loguru import logger

from .errors import MalformedInventoryError
from .inventory import SteamInventory
from .models import InventorySnapshot, StorageUnit, TransferResult, TransferStatus
from .notifications import BusEvent, CustomizationEvent, ItemCustomizationNotification, NotificationBus
from .resolver import list_storage_units, match_loose_asset_ids, resolve_by_name
from .session import SessionGate


class StorageHelper:
    """
    Операции со Storage Unit одного аккаунта.

    client должен предоставлять:
    - start(username, password, shared_secret) - вход в фоне
    - steam_id64
    - add_to_casket(unit_id, asset_id), remove_from_casket(unit_id, asset_id) -
      без подтверждения, гарантии доставки нет
    - await get_casket_contents(unit_id) -> List[int]

    Операции не реентерабельны: второй вызов во время работы первого
    отклоняется со статусом BUSY.
    """

    # Вместимость одного Storage Unit
    STORAGE_UNIT_CAPACITY = 1000

    def __init__(
        self,
        client,
        inventory: SteamInventory,
        notifications: NotificationBus,
        gate: SessionGate,
        settings: Dict[str, Any] = None
    ):
        self.client = client
        self.inventory = inventory
        self.notifications = notifications
        self.gate = gate
        self.settings = settings or {}

        self.pacing_delay = self.settings.get('storage', {}).get('pacing_delay_ms', 500) / 1000
        self._busy = False

        self.notifications.subscribe(BusEvent.ITEM_CUSTOMIZATION, self._on_item_customization)

    def login(self, username: str, password: str, shared_secret: Optional[str] = None) -> asyncio.Task:
        """
        Вход в Steam и подключение к GC. Не блокирует:
        готовность придет событием BusEvent.READY.
        """
        logger.info(f"Logging into Steam as {username}...")
        return self.client.start(username, password, shared_secret=shared_secret)

    def is_ready(self) -> bool:
        return self.gate.is_ready()

    async def add_items(self, storage_unit_name: str, item_name: str, max_items: Optional[int] = None) -> TransferResult:
        """
        Перемещение предметов одного типа в Storage Unit.

        Args:
            storage_unit_name: Name tag Storage Unit
            item_name: Полное название предмета
            max_items: Сколько предметов переместить. Если не задано или больше
                свободного места, перемещается сколько поместится

        Returns:
            TransferResult
        """
        return await self._run_exclusive(self._add_items(storage_unit_name, item_name, max_items),
                                         TransferResult(status=TransferStatus.BUSY))

    async def retrieve_items(self, storage_unit_name: str, max_items: Optional[int] = None) -> TransferResult:
        """
        Извлечение предметов из Storage Unit.

        Args:
            storage_unit_name: Name tag Storage Unit
            max_items: Сколько предметов извлечь. Если не задано, извлекаются все
        """
        return await self._run_exclusive(self._retrieve_items(storage_unit_name, max_items),
                                         TransferResult(status=TransferStatus.BUSY))

    async def storage_units(self) -> List[StorageUnit]:
        """Список всех Storage Unit с name tag. Пустой, пока идет другая операция."""
        return await self._run_exclusive(self._storage_units(), [])

    async def list_contents(self, storage_unit_id: int) -> List[int]:
        """ID предметов внутри Storage Unit. При ошибке GC пустой список."""
        try:
            return await self.client.get_casket_contents(storage_unit_id)
        except Exception as e:
            logger.error(f"Failed to get contents of storage unit {storage_unit_id}: {e}")
            return []

    async def _run_exclusive(self, operation, rejected):
        if self._busy:
            operation.close()
            logger.warning("Another storage operation is in progress")
            return rejected

        self._busy = True
        try:
            return await operation
        finally:
            self._busy = False

    async def _storage_units(self) -> List[StorageUnit]:
        if not self.is_ready():
            return []

        snapshot = await self._refresh_inventory()
        if snapshot is None:
            return []

        return list_storage_units(snapshot)

    async def _add_items(self, storage_unit_name: str, item_name: str, max_items: Optional[int]) -> TransferResult:
        if not self.is_ready():
            return TransferResult(status=TransferStatus.NOT_READY)

        snapshot = await self._refresh_inventory()
        if snapshot is None:
            return TransferResult(status=TransferStatus.INVENTORY_UNAVAILABLE)

        storage_unit, failure = self._resolve(snapshot, storage_unit_name)
        if failure:
            return failure

        capacity_remaining = storage_unit.capacity_remaining(self.STORAGE_UNIT_CAPACITY)
        if capacity_remaining <= 0:
            logger.warning(f"Storage unit {storage_unit_name} is full")
            return TransferResult(status=TransferStatus.STORAGE_UNIT_FULL, storage_unit=storage_unit)

        asset_ids = match_loose_asset_ids(snapshot, item_name)
        if not asset_ids:
            logger.warning(f"No items found for given name {item_name}")
            return TransferResult(status=TransferStatus.NO_ITEMS, storage_unit=storage_unit)

        count = self._bound(len(asset_ids), capacity_remaining, max_items)
        logger.info(f"Adding {count} x {item_name} to storage unit {storage_unit_name} "
                    f"({storage_unit.current_quantity}/{self.STORAGE_UNIT_CAPACITY})")

        sent = []
        for asset_id in asset_ids[:count]:
            self.client.add_to_casket(storage_unit.id, asset_id)
            sent.append(asset_id)
            await asyncio.sleep(self.pacing_delay)

        return TransferResult(status=TransferStatus.COMPLETED, storage_unit=storage_unit, asset_ids=sent)

    async def _retrieve_items(self, storage_unit_name: str, max_items: Optional[int]) -> TransferResult:
        if not self.is_ready():
            return TransferResult(status=TransferStatus.NOT_READY)

        snapshot = await self._refresh_inventory()
        if snapshot is None:
            return TransferResult(status=TransferStatus.INVENTORY_UNAVAILABLE)

        storage_unit, failure = self._resolve(snapshot, storage_unit_name)
        if failure:
            return failure

        asset_ids = await self.list_contents(storage_unit.id)
        if not asset_ids:
            logger.warning(f"No items found in storage unit {storage_unit_name}")
            return TransferResult(status=TransferStatus.NO_ITEMS, storage_unit=storage_unit)

        count = self._bound(len(asset_ids), max_items=max_items)
        logger.info(f"Retrieving {count} items from storage unit {storage_unit_name}")

        sent = []
        for asset_id in asset_ids[:count]:
            self.client.remove_from_casket(storage_unit.id, asset_id)
            sent.append(asset_id)
            await asyncio.sleep(self.pacing_delay)

        return TransferResult(status=TransferStatus.COMPLETED, storage_unit=storage_unit, asset_ids=sent)

    async def _refresh_inventory(self) -> Optional[InventorySnapshot]:
        steam_id = self.client.steam_id64
        if await self.inventory.refresh(steam_id):
            return self.inventory.snapshot

        if self.inventory.snapshot is None:
            logger.error("Failed to fetch inventory")
            return None

        logger.warning("Failed to refresh inventory, using previous snapshot")
        return self.inventory.snapshot

    def _resolve(self, snapshot: InventorySnapshot, storage_unit_name: str) -> Tuple[Optional[StorageUnit], Optional[TransferResult]]:
        """Поиск Storage Unit с учетом битых данных"""
        try:
            storage_unit = resolve_by_name(snapshot, storage_unit_name)
        except MalformedInventoryError as e:
            logger.error(f"Cannot read storage unit {storage_unit_name}: {e}")
            return None, TransferResult(status=TransferStatus.MALFORMED_INVENTORY, error=str(e))

        if storage_unit is None:
            return None, TransferResult(status=TransferStatus.STORAGE_UNIT_NOT_FOUND)

        return storage_unit, None

    @staticmethod
    def _bound(available: int, capacity: Optional[int] = None, max_items: Optional[int] = None) -> int:
        count = available
        if capacity is not None:
            count = min(count, capacity)
        if max_items is not None and max_items > 0:
            count = min(count, max_items)
        return count

    def _on_item_customization(self, event: CustomizationEvent):
        notification = event.notification_type

        if notification in (ItemCustomizationNotification.CasketInvFull,
                            ItemCustomizationNotification.CasketTooFull):
            unit_id = event.item_ids[0] if event.item_ids else None
            logger.warning(f"Storage unit {unit_id} is full")
        elif notification == ItemCustomizationNotification.CasketAdded:
            logger.info("Item added to storage unit")
        elif notification == ItemCustomizationNotification.CasketRemoved:
            logger.info("Item removed from storage unit")
