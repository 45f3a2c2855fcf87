# carblock/utils/phone.py
"""
Phone number helpers. Everything is canonicalised to the +7XXXXXXXXXX form
before it is hashed, encrypted, or used as an OTP key.
"""


def normalize_phone(phone: str) -> str:
    """
    Keep digits and '+', then:
      +7...      → unchanged
      8...       → +7...   (only when longer than one char, so "8" stays "8")
      7...       → +7...
      other digit-led → +7 prefix
    Empty or non-digit-led input passes through.
    """
    cleaned = "".join(c for c in phone if c.isascii() and (c.isdigit() or c == "+"))

    if cleaned.startswith("+7"):
        return cleaned
    if cleaned.startswith("8") and len(cleaned) > 1:
        return "+7" + cleaned[1:]
    if cleaned.startswith("7") and len(cleaned) > 1:
        return "+" + cleaned
    if cleaned and cleaned[0].isdigit():
        return "+7" + cleaned
    return cleaned


def validate_phone(phone: str) -> bool:
    return len(phone) >= 10 and phone.startswith(("+", "8", "7"))

