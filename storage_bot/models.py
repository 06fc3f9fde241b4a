"""
Структуры данных: инвентарь Steam, Storage Unit, состояние сессии.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any

from .errors import MalformedInventoryError


@dataclass(frozen=True)
class Asset:
    """Конкретный экземпляр предмета в инвентаре"""
    asset_id: int
    class_id: str
    casket_id: Optional[str] = None
    has_casket_marker: bool = False

    @property
    def in_storage(self) -> bool:
        return self.has_casket_marker

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Asset':
        try:
            return cls(
                asset_id=int(data['assetid']),
                class_id=str(data['classid']),
                casket_id=data.get('casket_id'),
                has_casket_marker='casket_id' in data
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedInventoryError(f"Bad asset record {data!r}: {e}") from e


@dataclass(frozen=True)
class ItemDescription:
    """
    Описание типа предмета (общее для всех assets с тем же classid).

    fraud_warnings у Storage Unit содержит name tag вида "Name Tag: ''<имя>''",
    а descriptions[2] - строку "Number of Items: <n>".
    """
    class_id: str
    name: str
    fraud_warnings: List[str] = field(default_factory=list)
    descriptions: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ItemDescription':
        try:
            return cls(
                class_id=str(data['classid']),
                name=data.get('name', ''),
                fraud_warnings=list(data.get('fraudwarnings') or []),
                descriptions=[d.get('value', '') for d in data.get('descriptions') or []]
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise MalformedInventoryError(f"Bad description record: {e}") from e


@dataclass(frozen=True)
class InventorySnapshot:
    """Копия инвентаря на момент последнего успешного запроса"""
    assets: List[Asset]
    descriptions: List[ItemDescription]

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'InventorySnapshot':
        """
        Сборка снапшота из ответа steamcommunity.com/inventory.

        Raises:
            MalformedInventoryError: если в ответе нет списка assets или записи битые
        """
        if not isinstance(data, dict):
            raise MalformedInventoryError("Inventory response is not an object")

        assets = data.get('assets')
        # Для пустого инвентаря Steam не присылает assets вовсе
        if assets is None and data.get('total_inventory_count') == 0:
            assets = []
        if not isinstance(assets, list):
            raise MalformedInventoryError("Inventory response has no assets")

        return cls(
            assets=[Asset.from_json(a) for a in assets],
            descriptions=[ItemDescription.from_json(d) for d in data.get('descriptions') or []]
        )


@dataclass(frozen=True)
class StorageUnit:
    """ID и текущее количество предметов в Storage Unit"""
    id: int
    name: str
    current_quantity: int

    def capacity_remaining(self, capacity: int) -> int:
        return capacity - self.current_quantity


@dataclass
class SessionState:
    """Флаги входа в Steam и сессии с GC"""
    logged_in: bool = False
    gc_connected: bool = False


class TransferStatus(Enum):
    """Итог операции перемещения"""
    COMPLETED = "completed"
    NOT_READY = "not_ready"
    BUSY = "busy"
    INVENTORY_UNAVAILABLE = "inventory_unavailable"
    STORAGE_UNIT_NOT_FOUND = "storage_unit_not_found"
    MALFORMED_INVENTORY = "malformed_inventory"
    NO_ITEMS = "no_items"
    STORAGE_UNIT_FULL = "storage_unit_full"


@dataclass
class TransferResult:
    """
    Результат add_items / retrieve_items.

    asset_ids - предметы, для которых был отправлен запрос в GC.
    Подтверждение от GC не ожидается.
    """
    status: TransferStatus
    storage_unit: Optional[StorageUnit] = None
    asset_ids: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == TransferStatus.COMPLETED

    @property
    def count(self) -> int:
        return len(self.asset_ids)
