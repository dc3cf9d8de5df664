import math
import random
import re
from datetime import datetime, date

# code -> (label, profile column)
SAVINGS_TYPES = {
    "tapro": ("Tabungan Progresif", "tapro_balance"),
    "simwa": ("Simpanan Wajib", "simwa_balance"),
    "simpok": ("Simpanan Pokok", "simpok_balance"),
    "simade": ("Masa Depan", "simade_balance"),
    "sipena": ("Pendidikan", "sipena_balance"),
    "sihara": ("Hari Raya", "sihara_balance"),
    "siqurma": ("Qurban", "siqurma_balance"),
    "siuji": ("Haji / Umroh", "siuji_balance"),
    "siwalima": ("Walimah", "siwalima_balance"),
}

BULAN = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


def parse_amount(value):
    """Strip every non-digit and return the integer, 0 when nothing is left.

    "Rp 1.500.000" -> 1500000
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else 0
    digits = re.sub(r"\D", "", str(value))
    return int(digits) if digits else 0


def safe_float(value, default=0.0):
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def format_thousands(value):
    return f"{int(round(safe_float(value))):,}".replace(",", ".")


def format_rupiah(value):
    amount = safe_float(value)
    if amount == 0:
        return "Rp 0"
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {format_thousands(abs(amount))}"


def format_gram(value):
    grams = safe_float(value)
    text = f"{grams:,.4f}"
    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    whole = whole.replace(",", ".")
    return f"{whole},{frac}" if frac else whole


def parse_date(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value:
        return None
    text = str(value).replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        try:
            return datetime.strptime(text[:10], "%Y-%m-%d")
        except ValueError:
            return None


def format_date_id(value):
    """12 Januari 2025 style date, '-' when unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return "-"
    return f"{parsed.day} {BULAN[parsed.month - 1]} {parsed.year}"


def generate_member_id(now=None, rng=random):
    now = now or datetime.now()
    return f"KKJ-{now.year}-{rng.randint(1000, 9999)}"


def balance_of(profile, savings_code):
    if not profile or savings_code not in SAVINGS_TYPES:
        return 0
    column = SAVINGS_TYPES[savings_code][1]
    return safe_float(profile.get(column))


def short_id(value):
    return str(value or "")[:8]


TRANSACTION_LABELS = {
    "topup": "Isi Saldo",
    "withdraw": "Tarik Tunai",
    "transfer_in": "Terima Uang",
    "transfer_out": "Kirim Uang",
    "payment": "Bayar Cicilan",
    "shop": "Belanja",
}


def transaction_label(tx_type):
    return TRANSACTION_LABELS.get(tx_type, tx_type or "-")
