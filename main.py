"""
CSGO Storage Bot.
Перемещение предметов в Storage Unit и обратно.

Запуск:
    python main.py add "Storage 1" "Recoil Case" --max 50
    python main.py retrieve "Storage 1" --max 10
    python main.py units
    python main.py contents "Storage 1"
    python main.py telegram  # Управление через Telegram
    python main.py code      # Текущий Steam Guard код
"""

import os
import sys
import json
import asyncio
import argparse
from typing import Optional
from loguru import logger

# Настройка логирования
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/bot_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="7 days",
    level="DEBUG"
)

from storage_bot.gc_client import StorageClient
from storage_bot.inventory import SteamInventory
from storage_bot.notifications import BusEvent, NotificationBus
from storage_bot.session import SessionGate
from storage_bot.steam_guard import SteamGuard
from storage_bot.storage_helper import StorageHelper
from storage_bot.telegram_bot import StorageTelegramBot


class StorageBotApp:
    """Главный класс бота"""

    def __init__(self, config_path: str = "config/settings.json"):
        self.config_path = config_path
        self.settings = self._load_settings()

        self.notifications = NotificationBus()
        self.gate = SessionGate()
        self.client: Optional[StorageClient] = None
        self.inventory: Optional[SteamInventory] = None
        self.storage: Optional[StorageHelper] = None
        self.steam_guard: Optional[SteamGuard] = None
        self.telegram_bot: Optional[StorageTelegramBot] = None

        self._ready = asyncio.Event()
        self._login_task: Optional[asyncio.Task] = None

    def _load_settings(self) -> dict:
        """Загрузка настроек"""
        with open(self.config_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def load_steam_guard(self) -> Optional[SteamGuard]:
        mafile_path = self.settings.get('steam', {}).get('mafile_path')
        if mafile_path:
            self.steam_guard = SteamGuard(mafile_path)
        return self.steam_guard

    def init_modules(self):
        """Инициализация модулей"""
        logger.info("Initializing modules...")

        self.client = StorageClient(self.gate, self.notifications)
        self.inventory = SteamInventory(
            timeout_seconds=self.settings.get('inventory', {}).get('timeout_seconds', 30)
        )
        self.storage = StorageHelper(
            client=self.client,
            inventory=self.inventory,
            notifications=self.notifications,
            gate=self.gate,
            settings=self.settings
        )
        self.notifications.subscribe(BusEvent.READY, self._ready.set)
        self.load_steam_guard()

    async def login(self):
        """Вход в Steam и ожидание сессии с GC"""
        steam = self.settings['steam']
        shared_secret = self.steam_guard.shared_secret_b64 if self.steam_guard else None
        self._login_task = self.storage.login(steam['username'], steam['password'], shared_secret)

        timeout = steam.get('ready_timeout_seconds', 60)
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise RuntimeError(f"GC session not ready after {timeout}s")

        logger.info("Ready!")

    async def run_telegram(self):
        """Управление через Telegram до остановки"""
        telegram = self.settings.get('telegram', {})
        self.telegram_bot = StorageTelegramBot(
            token=telegram['bot_token'],
            storage_helper=self.storage,
            notifications=self.notifications,
            admin_chat_id=telegram.get('admin_chat_id')
        )
        logger.info("Bot is running! Press Ctrl+C to stop.")
        await self.telegram_bot.run()

    async def shutdown(self):
        """Корректное завершение"""
        logger.info("Shutting down...")

        if self.telegram_bot:
            await self.telegram_bot.close()

        if self.client and not self.client.is_closed():
            await self.client.close()

        if self._login_task:
            try:
                await self._login_task
            except Exception as e:
                logger.debug(f"Steam client stopped with: {e}")

        if self.inventory:
            await self.inventory.close()

        logger.info("Shutdown complete")


async def run_command(app: StorageBotApp, args: argparse.Namespace):
    """Выполнение одной команды после входа"""
    app.init_modules()
    try:
        await app.login()

        if args.command == 'add':
            result = await app.storage.add_items(args.unit, args.item, args.max)
            logger.info(f"Add: {result.status.value}, {result.count} requests sent")
        elif args.command == 'retrieve':
            result = await app.storage.retrieve_items(args.unit, args.max)
            logger.info(f"Retrieve: {result.status.value}, {result.count} requests sent")
        elif args.command == 'units':
            for unit in await app.storage.storage_units():
                logger.info(f"  {unit.name}: {unit.current_quantity}/{StorageHelper.STORAGE_UNIT_CAPACITY} (id {unit.id})")
        elif args.command == 'contents':
            units = {unit.name: unit for unit in await app.storage.storage_units()}
            unit = units.get(args.unit)
            if unit is None:
                logger.warning(f"No storage unit found with name {args.unit}")
            else:
                asset_ids = await app.storage.list_contents(unit.id)
                logger.info(f"Storage unit {unit.name} contains {len(asset_ids)} items: {asset_ids}")
        elif args.command == 'telegram':
            await app.run_telegram()

        # Ответы GC на последние запросы
        await asyncio.sleep(app.storage.pacing_delay * 2)
    finally:
        await app.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='CSGO Storage Unit bot')
    parser.add_argument('--config', default='config/settings.json', help='Путь к settings.json')
    commands = parser.add_subparsers(dest='command', required=True)

    add = commands.add_parser('add', help='Положить предметы в Storage Unit')
    add.add_argument('unit', help='Name tag Storage Unit')
    add.add_argument('item', help='Полное название предмета')
    add.add_argument('--max', type=int, default=None, help='Максимум предметов')

    retrieve = commands.add_parser('retrieve', help='Забрать предметы из Storage Unit')
    retrieve.add_argument('unit', help='Name tag Storage Unit')
    retrieve.add_argument('--max', type=int, default=None, help='Максимум предметов')

    commands.add_parser('units', help='Список Storage Unit')

    contents = commands.add_parser('contents', help='Содержимое Storage Unit')
    contents.add_argument('unit', help='Name tag Storage Unit')

    commands.add_parser('telegram', help='Управление через Telegram')
    commands.add_parser('code', help='Текущий Steam Guard код')
    return parser


def main():
    """Точка входа"""
    args = build_parser().parse_args()

    # Создаем папку для логов
    os.makedirs('logs', exist_ok=True)

    try:
        app = StorageBotApp(args.config)

        if args.command == 'code':
            guard = app.load_steam_guard()
            if guard is None:
                logger.error("steam.mafile_path is not configured")
                sys.exit(1)
            logger.info(f"Steam Guard code: {guard.generate_code()}")
            return

        asyncio.run(run_command(app, args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
