# carblock/utils/plate.py
"""
Vehicle plate helpers — national format: 1 letter, 3 digits, 2 letters, 2–3 region digits.
Letters may be Cyrillic (А–Я, Ё) or their Latin look-alikes (A–Z).
Example: А123ВС777 / A123BC77
"""

from carblock.utils.logger import get_logger

logger = get_logger(__name__)

_CYRILLIC_UPPER = range(0x0410, 0x0430)   # А..Я
_CYRILLIC_YO = 0x0401                     # Ё


def normalize_plate(plate: str) -> str:
    """Strip spaces and hyphens, uppercase. Idempotent."""
    return plate.replace(" ", "").replace("-", "").upper()


def _is_letter(ch: str) -> bool:
    code = ord(ch)
    return code in _CYRILLIC_UPPER or code == _CYRILLIC_YO or ("A" <= ch <= "Z")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def validate_plate(plate: str) -> bool:
    """Check a plate against the national grammar. Input is normalized first."""
    normalized = normalize_plate(plate)

    if len(normalized) not in (8, 9):
        logger.debug(f"[PLATE] Invalid length {len(normalized)} for '{normalized}'")
        return False

    if not _is_letter(normalized[0]):
        logger.debug(f"[PLATE] First char '{normalized[0]}' (U+{ord(normalized[0]):04X}) is not a letter")
        return False

    if not all(_is_digit(c) for c in normalized[1:4]):
        logger.debug(f"[PLATE] Chars 1-3 of '{normalized}' are not all digits")
        return False

    if not all(_is_letter(c) for c in normalized[4:6]):
        logger.debug(f"[PLATE] Chars 4-5 of '{normalized}' are not letters")
        return False

    if not all(_is_digit(c) for c in normalized[6:]):
        logger.debug(f"[PLATE] Region digits of '{normalized}' are not all digits")
        return False

    return True


def format_plate(plate: str) -> str:
    """А123ВС777 → 'А 123 ВС 777'. Anything not 8–9 chars is returned normalized."""
    normalized = normalize_plate(plate)
    if len(normalized) in (8, 9):
        return f"{normalized[0]} {normalized[1:4]} {normalized[4:6]} {normalized[6:]}"
    return normalized
