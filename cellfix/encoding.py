"""
SMS Text Encoding Module

Keeps outgoing report text inside the GSM 7-bit alphabet used by
text-mode SMS and cuts long reports into parts the modem will accept.
"""

GSM7_BASIC = (
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
)
# Extended characters cost two septets each
GSM7_EXTENDED = "^{}\\[~]|€"

SINGLE_PART_LIMIT = 160
MULTI_PART_LIMIT = 153


def is_gsm7_compatible(text):
    """Check if text contains only GSM 7-bit characters."""
    return all(c in GSM7_BASIC or c in GSM7_EXTENDED for c in text)


def to_gsm7_text(text):
    """Replace every character outside the GSM 7-bit alphabet with '?'."""
    return ''.join(c if c in GSM7_BASIC or c in GSM7_EXTENDED else '?' for c in text)


def septet_length(text):
    return sum(2 if c in GSM7_EXTENDED else 1 for c in text)


def calculate_sms_parts(text):
    """
    Calculate how many text-mode SMS parts a GSM 7-bit message needs.

    Args:
        text: GSM 7-bit compatible message text

    Returns:
        tuple: (num_parts, chars_per_part)
    """
    length = septet_length(text)
    if length <= SINGLE_PART_LIMIT:
        return 1, SINGLE_PART_LIMIT
    return (length + MULTI_PART_LIMIT - 1) // MULTI_PART_LIMIT, MULTI_PART_LIMIT


def split_message(text, chars_per_part):
    """
    Split message into parts of at most chars_per_part septets.

    Extended characters are never split from their escape.

    Returns:
        list: Message parts in order
    """
    parts = []
    current_part = ""
    current_length = 0

    for char in text:
        char_length = 2 if char in GSM7_EXTENDED else 1
        if current_length + char_length > chars_per_part:
            parts.append(current_part)
            current_part = ""
            current_length = 0
        current_part += char
        current_length += char_length

    if current_part:
        parts.append(current_part)
    return parts
