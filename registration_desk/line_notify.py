from typing import Optional

import requests

from registration_desk.logging_config import get_logger, sanitize_for_log
from registration_desk.models import Registration
from registration_desk.timeutil import taiwan_now_str

LINE_API_URL = 'https://api.line.me/v2/bot/message/push'
REQUEST_TIMEOUT_SECONDS = 10

logger = get_logger("notify")


def build_cancellation_message(registration: Registration, cancelled_at: str) -> str:
    return (
        "📢 報名取消通知\n"
        "\n"
        f"📚 課程名稱：{registration.course_name}\n"
        f"👤 姓名：{registration.name}\n"
        f"🆔 身分證字號：{registration.id_number}\n"
        f"📅 開課日期：{registration.course_date}\n"
        "❌ 狀態：已取消\n"
        f"⏰ 取消時間：{cancelled_at}"
    )


class LineNotifier:
    """Push messages through the LINE Messaging API.

    Never raises: every failure is logged and reported as ``False``.
    """

    def __init__(self, channel_access_token: Optional[str], session: Optional[requests.Session] = None):
        self.channel_access_token = channel_access_token
        self.session = session or requests.Session()

    def send_message(self, user_id: Optional[str], message: str) -> bool:
        if not self.channel_access_token:
            logger.warning("LINE_CHANNEL_ACCESS_TOKEN 未設定，跳過 LINE 通知")
            return False
        if not user_id:
            logger.warning("LINE User ID 為空，跳過 LINE 通知")
            return False

        try:
            response = self.session.post(
                LINE_API_URL,
                headers={
                    'Content-Type': 'application/json',
                    'Authorization': f'Bearer {self.channel_access_token}',
                },
                json={
                    'to': user_id,
                    'messages': [{'type': 'text', 'text': message}],
                },
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error("LINE 通知發送錯誤: %s", sanitize_for_log(str(e)))
            return False

        if response.ok:
            logger.info("LINE 通知發送成功")
            return True

        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        logger.error("LINE 通知發送失敗 (status=%s): %s", response.status_code, detail)
        return False

    def send_cancellation_notice(self, registration: Registration, recipient_id: Optional[str]) -> bool:
        message = build_cancellation_message(registration, taiwan_now_str())
        return self.send_message(recipient_id, message)
