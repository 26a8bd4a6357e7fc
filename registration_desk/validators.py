"""Input validation for ID numbers, birthdays and display names."""

import re

# One region letter, 1 (male) or 2 (female), then 8 digits
ID_NUMBER_PATTERN = re.compile(r"[A-Z][12][0-9]{8}")
# ROC-era date, e.g. 0850312 for 1996-03-12
BIRTHDAY_PATTERN = re.compile(r"[0-9]{7}")
MASK_CHAR = "＊"


def validate_id_number(id_number) -> bool:
    if not id_number or not isinstance(id_number, str):
        return False
    return ID_NUMBER_PATTERN.fullmatch(id_number.upper()) is not None


def normalize_id_number(id_number) -> str:
    """Upper-case and trim; anything that is not a non-empty string becomes ''."""
    if not id_number or not isinstance(id_number, str):
        return ""
    return id_number.upper().strip()


def validate_birthday(birthday) -> bool:
    if not isinstance(birthday, str):
        return False
    return BIRTHDAY_PATTERN.fullmatch(birthday) is not None


def mask_name(name: str) -> str:
    """王小明 -> 王＊明, 王明 -> 王＊, 王 -> 王."""
    if not name or len(name) < 2:
        return name
    if len(name) == 2:
        return name[0] + MASK_CHAR
    return name[0] + MASK_CHAR * (len(name) - 2) + name[-1]


def mask_id_for_log(id_number: str) -> str:
    """Keep only the first and last two characters of an ID number for log lines."""
    if not id_number or len(id_number) <= 4:
        return "***"
    return f"{id_number[:2]}{'*' * (len(id_number) - 4)}{id_number[-2:]}"
