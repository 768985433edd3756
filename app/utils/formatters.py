# app/utils/formatters.py
"""vi-VN display formatting shared by reports, exports and e-mails."""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


def vnd_number(value) -> str:
    """250000 -> '250.000', 1234.5 -> '1.234,5' (vi-VN, up to 2 decimals)."""
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    text = f"{int(whole):,}".replace(",", ".")
    frac = frac.rstrip("0")
    return sign + (f"{text},{frac}" if frac else text)


def money(value) -> str:
    return f"{vnd_number(value)}đ"


def vi_date(d: date | datetime) -> str:
    """19/10/2026, 5/1/2026 - day/month without zero padding."""
    return f"{d.day}/{d.month}/{d.year}"


def file_date(d: date | datetime) -> str:
    return vi_date(d).replace("/", "-")
