"""
Telegram Bot для управления Storage Unit.
Команды перемещения предметов и уведомления от GC.
"""

import html
from typing import List, Optional

from aiogram import Bot, Dispatcher, types
from aiogram.client.default import DefaultBotProperties
from aiogram.filters import Command, CommandObject
from loguru import logger

from .models import TransferResult
from .notifications import BusEvent, CustomizationEvent, ItemCustomizationNotification, NotificationBus
from .storage_helper import StorageHelper


HELP_TEXT = (
    "<b>📦 CSGO STORAGE BOT</b>\n\n"
    "/status - состояние сессии\n"
    "/units - список Storage Unit\n"
    "/add <code>unit | item [| max]</code> - положить предметы\n"
    "/retrieve <code>unit [| max]</code> - забрать предметы"
)


def parse_command_args(text: Optional[str]) -> List[str]:
    """Разбор аргументов команды, разделенных '|'"""
    if not text:
        return []
    return [part.strip() for part in text.split('|') if part.strip()]


def parse_max_items(value: Optional[str]) -> Optional[int]:
    """Лимит предметов из аргумента. ValueError если это не число."""
    if value is None:
        return None
    return int(value)


def format_transfer_result(action: str, result: TransferResult) -> str:
    if result.success:
        return f"✅ {action}: отправлено запросов в GC - <code>{result.count}</code>"

    text = f"❌ {action}: <code>{result.status.value}</code>"
    if result.error:
        text += f"\n{html.escape(result.error)}"
    return text


class StorageTelegramBot:
    """Telegram бот для управления Storage Unit"""

    def __init__(
        self,
        token: str,
        storage_helper: StorageHelper,
        notifications: NotificationBus,
        admin_chat_id: Optional[int] = None
    ):
        self.bot = Bot(token=token, default=DefaultBotProperties(parse_mode="HTML"))
        self.dp = Dispatcher()
        self.storage_helper = storage_helper
        self.admin_chat_id = admin_chat_id

        self._register_handlers()
        notifications.subscribe(BusEvent.ITEM_CUSTOMIZATION, self._on_item_customization)
        notifications.subscribe(BusEvent.ERROR, self._on_error)

        logger.info("Telegram bot initialized")

    def _register_handlers(self):
        """Регистрация всех обработчиков"""

        @self.dp.message(Command("start"))
        async def cmd_start(message: types.Message):
            self.admin_chat_id = message.chat.id
            await message.answer(HELP_TEXT)
            logger.info(f"New admin chat: {message.chat.id}")

        @self.dp.message(Command("status"))
        async def cmd_status(message: types.Message):
            state = self.storage_helper.gate.state
            await message.answer(
                "<b>⚙️ СТАТУС</b>\n\n"
                f"• Steam: <code>{'ДА ✅' if state.logged_in else 'НЕТ ❌'}</code>\n"
                f"• Game Coordinator: <code>{'ДА ✅' if state.gc_connected else 'НЕТ ❌'}</code>"
            )

        @self.dp.message(Command("units"))
        async def cmd_units(message: types.Message):
            units = await self.storage_helper.storage_units()
            if not units:
                await message.answer("❌ Storage Unit не найдены")
                return

            lines = [f"• {html.escape(unit.name)}: <code>{unit.current_quantity}/{StorageHelper.STORAGE_UNIT_CAPACITY}</code>"
                     for unit in units]
            await message.answer("<b>📦 STORAGE UNITS</b>\n\n" + "\n".join(lines))

        @self.dp.message(Command("add"))
        async def cmd_add(message: types.Message, command: CommandObject):
            args = parse_command_args(command.args)
            if len(args) < 2:
                await message.answer("Использование: /add <code>unit | item [| max]</code>")
                return

            try:
                max_items = parse_max_items(args[2] if len(args) > 2 else None)
            except ValueError:
                await message.answer("❌ max должен быть числом")
                return

            result = await self.storage_helper.add_items(args[0], args[1], max_items)
            await message.answer(format_transfer_result("Добавление", result))

        @self.dp.message(Command("retrieve"))
        async def cmd_retrieve(message: types.Message, command: CommandObject):
            args = parse_command_args(command.args)
            if not args:
                await message.answer("Использование: /retrieve <code>unit [| max]</code>")
                return

            try:
                max_items = parse_max_items(args[1] if len(args) > 1 else None)
            except ValueError:
                await message.answer("❌ max должен быть числом")
                return

            result = await self.storage_helper.retrieve_items(args[0], max_items)
            await message.answer(format_transfer_result("Извлечение", result))

    async def _send_admin(self, text: str):
        if not self.admin_chat_id:
            return

        try:
            await self.bot.send_message(chat_id=self.admin_chat_id, text=text)
        except Exception as e:
            logger.error(f"Failed to send notification: {e}")

    async def _on_item_customization(self, event: CustomizationEvent):
        if event.notification_type in (ItemCustomizationNotification.CasketInvFull,
                                       ItemCustomizationNotification.CasketTooFull):
            unit_id = event.item_ids[0] if event.item_ids else '?'
            await self._send_admin(f"⚠️ Storage unit <code>{unit_id}</code> заполнен")

    async def _on_error(self, error: Exception):
        await self._send_admin(f"⚠️ <b>Ошибка:</b>\n\n<code>{html.escape(str(error))}</code>")

    async def run(self):
        """Запуск бота"""
        logger.info("Starting Telegram bot...")
        await self.dp.start_polling(self.bot)

    async def close(self):
        await self.bot.session.close()
