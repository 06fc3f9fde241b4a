"""Synthetic inventory fixtures and fakes for the GC client."""

from storage_bot.inventory import SteamInventory
from storage_bot.models import InventorySnapshot, SessionState
from storage_bot.notifications import NotificationBus
from storage_bot.session import SessionGate
from storage_bot.storage_helper import StorageHelper

STEAM_ID = "76561198000000000"


def asset(asset_id, class_id, casket_id=None):
    data = {"appid": 730, "contextid": "2", "assetid": str(asset_id),
            "classid": class_id, "instanceid": "0", "amount": "1"}
    if casket_id is not None:
        data["casket_id"] = casket_id
    return data


def item_description(class_id, name):
    return {
        "classid": class_id,
        "instanceid": "0",
        "name": name,
        "market_hash_name": name,
        "descriptions": [{"type": "html", "value": " "}],
    }


def storage_unit_description(class_id, name_tag, quantity_line):
    data = {
        "classid": class_id,
        "instanceid": "0",
        "name": "Storage Unit",
        "descriptions": [
            {"type": "html", "value": " "},
            {"type": "html", "value": "Store up to 1,000 items in this container."},
            {"type": "html", "value": quantity_line},
        ],
    }
    if name_tag is not None:
        data["fraudwarnings"] = [f"Name Tag: ''{name_tag}''"]
    return data


def inventory_data(quantity=998, loose_cases=5, stored_cases=0):
    """Inventory with one 'Cases' storage unit and some Recoil Cases."""
    assets = [asset(9000, "3604678661")]
    for i in range(stored_cases):
        assets.append(asset(500 + i, "4141000001", casket_id="9000"))
    for i in range(loose_cases):
        assets.append(asset(100 + i, "4141000001"))
    assets.append(asset(700, "310776560"))

    return {
        "assets": assets,
        "descriptions": [
            storage_unit_description("3604678661", "Cases", f"Number of Items: {quantity}"),
            item_description("4141000001", "Recoil Case"),
            item_description("310776560", "AK-47 | Redline (Field-Tested)"),
        ],
        "total_inventory_count": len(assets),
        "success": 1,
    }


class FakeClient:
    """Records GC calls instead of talking to Steam."""

    def __init__(self, contents=None, contents_error=None):
        self.steam_id64 = STEAM_ID
        self.contents = contents or {}
        self.contents_error = contents_error
        self.added = []
        self.removed = []
        self.contents_requests = []
        self.started = None

    def start(self, username, password, shared_secret=None):
        self.started = (username, password, shared_secret)

    def add_to_casket(self, unit_id, asset_id):
        self.added.append((unit_id, asset_id))

    def remove_from_casket(self, unit_id, asset_id):
        self.removed.append((unit_id, asset_id))

    async def get_casket_contents(self, unit_id):
        self.contents_requests.append(unit_id)
        if self.contents_error:
            raise self.contents_error
        return list(self.contents.get(unit_id, []))

    @property
    def gc_calls(self):
        return len(self.added) + len(self.removed) + len(self.contents_requests)


class FakeInventory(SteamInventory):
    """Serves a fixed response body, or fails when data is None."""

    def __init__(self, data=None, snapshot=None):
        super().__init__()
        self.data = data
        self.snapshot = snapshot
        self.refresh_calls = []

    async def refresh(self, steam_id64):
        self.refresh_calls.append(steam_id64)
        if self.data is None:
            return False
        self.snapshot = InventorySnapshot.from_response(self.data)
        return True


def make_helper(client=None, inventory=None, ready=True, notifications=None, settings=None):
    gate = SessionGate(SessionState(logged_in=ready, gc_connected=ready))
    return StorageHelper(
        client=client or FakeClient(),
        inventory=inventory or FakeInventory(inventory_data()),
        notifications=notifications or NotificationBus(),
        gate=gate,
        settings=settings if settings is not None else {"storage": {"pacing_delay_ms": 0}},
    )
