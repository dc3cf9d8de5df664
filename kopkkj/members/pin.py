"""Six-digit transaction PIN shared by every money-moving form."""
import hmac
import re

from werkzeug.security import generate_password_hash, check_password_hash

from ..errors import PortalError, Forbidden

PIN_PATTERN = re.compile(r"^\d{6}$")
ASCENDING = "0123456789012345"
DESCENDING = "9876543210987654"



def check_pin_strength(pin):
    if not pin:
        return None
    if len(pin) < 6:
        return {"label": "Minimal 6 digit", "is_weak": True}
    repeated = re.search(r"(.)\1{5}", pin) is not None
    sequential = pin in ASCENDING or pin in DESCENDING
    if repeated or sequential:
        return {"label": "PIN terlalu lemah (mudah ditebak)", "is_weak": True}
    return {"label": "Kekuatan PIN baik", "is_weak": False}


def hash_pin(pin):
    return generate_password_hash(pin)


def pin_matches(stored, pin):
    if not stored or not pin:
        return False
    # rows written by the old web client still hold the bare digits
    if PIN_PATTERN.match(stored):
        return hmac.compare_digest(stored, pin)
    return check_password_hash(stored, pin)


def verify_pin(user, pin):
    """Raise unless ``pin`` is the user's transaction PIN."""
    if not (user or {}).get("pin"):
        raise PortalError("Anda belum mengatur PIN. Silakan atur di menu Profil.")
    pin = "" if pin is None else str(pin)
    # exactly six digits as typed; nothing is stripped or cut
    if not PIN_PATTERN.fullmatch(pin):
        raise PortalError("Masukkan 6 digit PIN")
    if not pin_matches(user["pin"], pin):
        raise Forbidden("PIN Salah! Silakan coba lagi.")


def validate_new_pin(user, new_pin, old_pin=None):
    """Checks done before storing a new PIN; returns the hash to store."""
    new_pin = str(new_pin or "")
    if not PIN_PATTERN.fullmatch(new_pin):
        raise PortalError("PIN Baru harus 6 digit angka!")
    strength = check_pin_strength(new_pin)
    if strength and strength["is_weak"]:
        raise PortalError("PIN terlalu lemah, gunakan kombinasi angka lain.")
    if (user or {}).get("pin"):
        if not old_pin:
            raise PortalError("Masukkan PIN Lama untuk verifikasi!")
        if not pin_matches(user["pin"], str(old_pin)):
            raise Forbidden("PIN Lama SALAH!")
        if str(old_pin) == new_pin:
            raise PortalError("PIN Baru tidak boleh sama dengan PIN Lama.")
    return hash_pin(new_pin)
