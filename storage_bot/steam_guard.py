"""
Steam Guard: секреты из SDA maFile и генерация 2FA кодов.
Нужен для входа без ручного ввода кода.
"""

import json
import struct
import hmac
import hashlib
import time
from base64 import b64decode
from typing import Optional

from loguru import logger


class SteamGuard:
    """Данные мобильного аутентификатора из SDA maFile"""

    STEAM_GUARD_CHARSET = '23456789BCDFGHJKMNPQRTVWXY'

    def __init__(self, mafile_path: str):
        """
        Args:
            mafile_path: Путь к SDA maFile
        """
        self.mafile_path = mafile_path
        self._load_mafile()

    def _load_mafile(self):
        """Загрузка данных из SDA maFile"""
        with open(self.mafile_path, 'r') as f:
            data = json.load(f)

        # steam.py принимает секреты в base64
        self.shared_secret_b64: str = data['shared_secret']
        self.shared_secret = b64decode(self.shared_secret_b64)
        self.account_name = data.get('account_name', '')

        logger.info(f"Loaded SDA maFile for: {self.account_name}")

    def generate_code(self, timestamp: Optional[int] = None) -> str:
        """Генерация 5-значного кода Steam Guard"""
        if timestamp is None:
            timestamp = int(time.time())

        time_chunk = timestamp // 30
        msg = struct.pack('>Q', time_chunk)
        hmac_hash = hmac.new(self.shared_secret, msg, hashlib.sha1).digest()

        offset = hmac_hash[19] & 0x0F
        code_int = struct.unpack('>I', hmac_hash[offset:offset+4])[0] & 0x7FFFFFFF

        code = ''
        for _ in range(5):
            code_int, idx = divmod(code_int, len(self.STEAM_GUARD_CHARSET))
            code += self.STEAM_GUARD_CHARSET[idx]

        return code
