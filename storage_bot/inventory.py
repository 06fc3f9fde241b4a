"""
Загрузка CSGO инвентаря через публичный API steamcommunity.com.
"""

import asyncio
import aiohttp
from typing import Optional
from loguru import logger

from .errors import MalformedInventoryError
from .models import InventorySnapshot


class SteamInventory:
    """
    Хранит последний успешно загруженный инвентарь.

    При ошибке загрузки снапшот не меняется, используется старый.
    """

    INVENTORY_URL = "https://steamcommunity.com/inventory/{steam_id}/730/2"
    # Больше 1000 предметов не загружается
    PAGE_SIZE = 1000

    def __init__(self, timeout_seconds: float = 30):
        self.timeout_seconds = timeout_seconds
        self.snapshot: Optional[InventorySnapshot] = None
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Получение HTTP сессии"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        """Закрытие сессии"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def refresh(self, steam_id64: str) -> bool:
        """
        Загрузка инвентаря.

        Args:
            steam_id64: SteamID64 аккаунта

        Returns:
            True если снапшот обновлен
        """
        url = self.INVENTORY_URL.format(steam_id=steam_id64)
        params = {'l': 'english', 'count': self.PAGE_SIZE}
        headers = {
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
            'Accept': 'application/json'
        }

        try:
            session = await self._get_session()
            async with session.get(url, params=params, headers=headers,
                                   timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)) as resp:
                if resp.status == 403:
                    logger.error(f"Inventory of {steam_id64} is private")
                    return False
                elif resp.status == 429:
                    logger.error("Rate limited by steamcommunity.com")
                    return False
                elif resp.status != 200:
                    logger.error(f"Failed to fetch inventory: HTTP {resp.status}")
                    return False

                data = await resp.json(content_type=None)

            self.snapshot = InventorySnapshot.from_response(data)

        except MalformedInventoryError as e:
            logger.error(f"Malformed inventory response: {e}")
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error fetching inventory: {e}")
            return False

        logger.debug(f"Inventory refreshed: {len(self.snapshot.assets)} assets, "
                     f"{len(self.snapshot.descriptions)} descriptions")
        return True
