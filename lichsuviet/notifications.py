"""
Lich Su Viet - Notifications Module

Tells the site team about new visitor feedback through a Telegram bot.
Delivery is best effort: failures are logged and never reach the visitor.
"""

import logging
from typing import Dict, Any, Optional

import requests

from lichsuviet.config import (
    TELEGRAM_API_URL, TELEGRAM_BOT_TOKEN_KEY, TELEGRAM_CHAT_ID_KEY, REQUEST_TIMEOUT
)
from lichsuviet.db import storage

logger = logging.getLogger(__name__)


def format_feedback_message(feedback: Dict[str, Any]) -> str:
    return (
        f"🔔 Góp ý mới!\n\n"
        f"Từ: {feedback['name']}\n"
        f"SĐT: {feedback['phone']}\n"
        f"Email: {feedback['email']}\n\n"
        f"Nội dung:\n{feedback['content']}"
    )


def _setting_value(key: str) -> Optional[str]:
    setting = storage.get_setting(key)
    return setting.get('value') if setting else None


def notify_feedback(feedback: Dict[str, Any]) -> bool:
    """Send the feedback to Telegram. Returns True if a message was delivered."""
    try:
        bot_token = _setting_value(TELEGRAM_BOT_TOKEN_KEY)
        chat_id = _setting_value(TELEGRAM_CHAT_ID_KEY)
        if not bot_token or not chat_id:
            return False

        response = requests.post(
            f"{TELEGRAM_API_URL}/bot{bot_token}/sendMessage",
            json={
                "chat_id": chat_id,
                "text": format_feedback_message(feedback),
                "parse_mode": "HTML",
            },
            timeout=REQUEST_TIMEOUT
        )
        if not response.ok:
            logger.error(f"Telegram notify failed: {response.status_code}")
            return False
        return True
    except Exception as e:
        logger.error(f"Telegram notify error: {e}")
        return False
