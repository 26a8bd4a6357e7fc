from dataclasses import dataclass
from typing import Optional

import requests

from registration_desk.exceptions import ConfigurationError
from registration_desk.logging_config import get_logger, sanitize_for_log

RECAPTCHA_VERIFY_URL = 'https://www.google.com/recaptcha/api/siteverify'
REQUEST_TIMEOUT_SECONDS = 10

logger = get_logger("recaptcha")


@dataclass
class VerificationResult:
    success: bool
    score: Optional[float] = None
    error: Optional[str] = None


class RecaptchaVerifier:
    """reCAPTCHA v3 token check.

    ``bypass`` switches verification off entirely; every bypassed request is
    logged so the setting cannot go unnoticed in production.
    """

    def __init__(self, secret_key: Optional[str], min_score: float = 0.5, bypass: bool = False,
                 session: Optional[requests.Session] = None):
        self.secret_key = secret_key
        self.min_score = min_score
        self.bypass = bypass
        self.session = session or requests.Session()

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> VerificationResult:
        if self.bypass:
            logger.warning("reCAPTCHA 驗證已停用 (RECAPTCHA_BYPASS=true)")
            return VerificationResult(success=True, score=1.0)

        if not self.secret_key:
            raise ConfigurationError("請設定 RECAPTCHA_SECRET_KEY 環境變數")

        if not token:
            return VerificationResult(success=False, error='缺少 reCAPTCHA token')

        form = {'secret': self.secret_key, 'response': token}
        if remote_ip:
            form['remoteip'] = remote_ip

        try:
            response = self.session.post(RECAPTCHA_VERIFY_URL, data=form, timeout=REQUEST_TIMEOUT_SECONDS)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("reCAPTCHA 驗證錯誤: %s", sanitize_for_log(str(e)))
            return VerificationResult(success=False, error='驗證服務暫時無法使用')

        logger.debug("reCAPTCHA 驗證回應: %s", data)

        if not data.get('success'):
            logger.warning("reCAPTCHA 驗證失敗: %s", data.get('error-codes'))
            return VerificationResult(success=False, error='人機驗證失敗，請重新整理頁面再試')

        score = data.get('score')
        if score is not None and score < self.min_score:
            logger.warning("reCAPTCHA 分數過低: %s < %s", score, self.min_score)
            return VerificationResult(success=False, score=score, error='系統偵測到異常行為，請稍後再試')

        return VerificationResult(success=True, score=score)
