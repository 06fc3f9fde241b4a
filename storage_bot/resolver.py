"""
Поиск Storage Unit и предметов в снапшоте инвентаря.
"""

from typing import List, Optional

from loguru import logger

from .errors import MalformedInventoryError
from .models import InventorySnapshot, ItemDescription, StorageUnit


STORAGE_UNIT_NAME = "Storage Unit"
NAME_TAG_TEMPLATE = "Name Tag: ''{name}''"
QUANTITY_PREFIX = "Number of Items: "
# Индекс строки с количеством предметов в descriptions
QUANTITY_INDEX = 2


def _storage_unit_descriptions(snapshot: InventorySnapshot) -> List[ItemDescription]:
    return [d for d in snapshot.descriptions if d.name == STORAGE_UNIT_NAME]


def _name_tag(description: ItemDescription) -> Optional[str]:
    if not description.fraud_warnings:
        return None
    return description.fraud_warnings[0]


def _parse_quantity(description: ItemDescription) -> int:
    if len(description.descriptions) <= QUANTITY_INDEX:
        raise MalformedInventoryError(
            f"Storage unit {description.class_id} has no item count field"
        )

    value = description.descriptions[QUANTITY_INDEX]
    if not value.startswith(QUANTITY_PREFIX):
        raise MalformedInventoryError(
            f"Storage unit {description.class_id} item count has unexpected format: {value!r}"
        )

    try:
        return int(value[len(QUANTITY_PREFIX):].strip())
    except ValueError as e:
        raise MalformedInventoryError(
            f"Storage unit {description.class_id} item count is not a number: {value!r}"
        ) from e


def _build_storage_unit(snapshot: InventorySnapshot, description: ItemDescription, name: str) -> StorageUnit:
    asset = next((a for a in snapshot.assets if a.class_id == description.class_id), None)
    if asset is None:
        raise MalformedInventoryError(
            f"No asset found for storage unit class {description.class_id}"
        )

    return StorageUnit(
        id=asset.asset_id,
        name=name,
        current_quantity=_parse_quantity(description)
    )


def resolve_by_name(snapshot: InventorySnapshot, name: str) -> Optional[StorageUnit]:
    """
    Поиск Storage Unit по name tag, заданному пользователем.

    Сравнение точное, с учетом регистра.

    Returns:
        StorageUnit или None если не найден

    Raises:
        MalformedInventoryError: Storage Unit найден, но количество не читается
    """
    name_tag = NAME_TAG_TEMPLATE.format(name=name)
    description = next(
        (d for d in _storage_unit_descriptions(snapshot) if _name_tag(d) == name_tag),
        None
    )

    if description is None:
        logger.warning(f"No storage unit found with name {name}")
        return None

    return _build_storage_unit(snapshot, description, name)


def list_storage_units(snapshot: InventorySnapshot) -> List[StorageUnit]:
    """Все Storage Unit с name tag. Битые записи пропускаются."""
    prefix, suffix = NAME_TAG_TEMPLATE.split('{name}')
    units = []

    for description in _storage_unit_descriptions(snapshot):
        tag = _name_tag(description)
        if not tag or not tag.startswith(prefix) or not tag.endswith(suffix):
            continue

        name = tag[len(prefix):len(tag) - len(suffix)]
        try:
            units.append(_build_storage_unit(snapshot, description, name))
        except MalformedInventoryError as e:
            logger.warning(f"Skipping storage unit {name}: {e}")

    return units


def match_loose_asset_ids(snapshot: InventorySnapshot, name: str) -> List[int]:
    """
    ID предметов с данным названием, которые не лежат в Storage Unit.

    Порядок - как в инвентаре. Если названия нет, пустой список.
    """
    description = next((d for d in snapshot.descriptions if d.name == name), None)
    if description is None:
        return []

    return [
        asset.asset_id
        for asset in snapshot.assets
        if asset.class_id == description.class_id and not asset.in_storage
    ]
