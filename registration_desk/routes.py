from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from registration_desk.dependencies import Services, ServicesDep
from registration_desk.exceptions import ValidationError, VerificationError
from registration_desk.logging_config import get_logger
from registration_desk.validators import normalize_id_number, validate_birthday, validate_id_number

CANCEL_CONFIRM_TEXT = '我確定取消'

router = APIRouter()
logger = get_logger("http")


# --- REQUEST MODELS ---
class QueryRequest(BaseModel):
    id_number: Optional[str] = None
    birthday: Optional[str] = None
    recaptcha_token: Optional[str] = None


class CancelRequest(BaseModel):
    id_number: Optional[str] = None
    birthday: Optional[str] = None
    course_name: Optional[str] = None
    confirm_text: Optional[str] = None


class ConfirmRequest(BaseModel):
    id_number: Optional[str] = None
    birthday: Optional[str] = None
    course_name: Optional[str] = None


# --- HELPERS ---
def client_ip(request: Request) -> str:
    """Address appended by the single trusted reverse proxy, else the socket peer.

    Earlier X-Forwarded-For entries come from the client and can be forged.
    """
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(',') if hop.strip()]
        if hops:
            return hops[-1]
    if request.client and request.client.host:
        return request.client.host
    return 'unknown'


def user_agent(request: Request) -> str:
    return request.headers.get('user-agent') or 'unknown'


def _checked_id_number(raw: Optional[str]) -> str:
    id_number = normalize_id_number(raw)
    if not validate_id_number(id_number):
        raise ValidationError('身分證字號格式不正確')
    return id_number


def _checked_birthday(services: Services, raw: Optional[str]) -> Optional[str]:
    """Birthday is only used (and required) when the sheet matches on it."""
    if not services.settings.REQUIRE_BIRTHDAY:
        return None
    birthday = (raw or '').strip()
    if not birthday:
        raise ValidationError('請提供生日')
    if not validate_birthday(birthday):
        raise ValidationError('生日格式不正確，請輸入 7 位數字（例如 0850312）')
    return birthday


# --- ENDPOINTS ---
@router.post("/query", summary="依身分證字號查詢課程報名資料")
def query_registrations(body: QueryRequest, request: Request, services: ServicesDep):
    verification = services.verifier.verify(body.recaptcha_token, remote_ip=client_ip(request))
    if not verification.success:
        logger.warning("Verification failed for %s (score=%s)", client_ip(request), verification.score)
        raise VerificationError(verification.error or '人機驗證失敗', score=verification.score)

    if not body.id_number:
        raise ValidationError('請提供身分證字號')
    id_number = _checked_id_number(body.id_number)
    birthday = _checked_birthday(services, body.birthday)

    registrations = services.lookup.lookup(id_number, birthday)
    mask = services.settings.MASK_NAMES
    return {
        "success": True,
        "data": [r.to_public_dict(mask=mask) for r in registrations],
    }


@router.post("/cancel", summary="取消課程報名")
def cancel_registration(body: CancelRequest, request: Request, services: ServicesDep):
    if not body.id_number or not body.course_name or not body.confirm_text:
        raise ValidationError('請提供完整資料（身分證、課程名稱、確認文字）')
    if body.confirm_text != CANCEL_CONFIRM_TEXT:
        raise ValidationError(f'確認文字不正確，請輸入「{CANCEL_CONFIRM_TEXT}」')

    id_number = _checked_id_number(body.id_number)
    birthday = _checked_birthday(services, body.birthday)

    services.actions.cancel(id_number, body.course_name, client_ip(request), user_agent(request),
                            birthday=birthday)
    return {"success": True, "message": "報名已成功取消"}


@router.post("/confirm", summary="確認上課")
def confirm_registration(body: ConfirmRequest, request: Request, services: ServicesDep):
    if not body.id_number or not body.course_name:
        raise ValidationError('請提供完整資料（身分證、課程名稱）')

    id_number = _checked_id_number(body.id_number)
    birthday = _checked_birthday(services, body.birthday)

    services.actions.confirm(id_number, body.course_name, client_ip(request), user_agent(request),
                             birthday=birthday)
    return {"success": True, "message": "已成功確認上課"}


@router.get("/health", summary="檢查 API 狀態")
def health(services: ServicesDep):
    return {
        "status": "online",
        "sheet": services.settings.SHEET_NAME,
        "birthday_required": services.settings.REQUIRE_BIRTHDAY,
    }
