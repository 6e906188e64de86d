"""Presentation helpers for reply text."""


def format_number(value: float) -> str:
    """Group thousands and trim trailing zeros: 50000 -> "50,000".

    Values of 1 and above keep up to 3 decimals; smaller values keep up to 8
    so sub-cent prices do not collapse to "0".
    """
    decimals = 3 if abs(value) >= 1 else 8
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_amount(amount: float) -> str:
    """Render a holding amount the way the user typed it: 2.0 -> "2"."""
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)


def direction_word(change: float | None) -> str:
    return "up" if change is not None and change > 0 else "down"
