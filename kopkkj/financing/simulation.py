"""Installment preview shown before a financing request is sent.

Only a preview: the real schedule is generated by ``approve_loan`` on the
database side.
"""
import json
import math

from ..utils import parse_amount, safe_float

FINANCING_TYPES = ("Kredit Barang", "Modal Usaha", "Biaya Pelatihan", "Biaya Pendidikan")

# 10% a year for goods credit and business capital, 0.6% a month otherwise
YEARLY_MARGIN_TYPES = ("Kredit Barang", "Modal Usaha")
YEARLY_MARGIN = 0.10
MONTHLY_MARGIN = 0.006

PRINCIPAL_FIELDS = {
    "Modal Usaha": "business_capital",
    "Biaya Pelatihan": "training_cost",
    "Biaya Pendidikan": "education_cost",
}


def monthly_rate(financing_type):
    if financing_type in YEARLY_MARGIN_TYPES:
        return YEARLY_MARGIN / 12
    return MONTHLY_MARGIN


def product_tenors(product):
    tenors = (product or {}).get("tenors") or []
    if isinstance(tenors, str):
        tenors = [t for t in tenors.strip("[]").split(",") if t.strip()]
    return [int(t) for t in tenors]


def simulate(financing_type, tenor, form=None, product=None):
    """Return principal, margin, tax, installment and the tenor actually used."""
    form = form or {}
    tenor = int(parse_amount(tenor))
    principal = 0
    tax = 0

    if financing_type == "Kredit Barang":
        if product:
            principal = safe_float(product.get("price")) - safe_float(product.get("dp"))
            tax = safe_float(product.get("tax"))
            tenors = product_tenors(product)
            if tenors and tenor not in tenors:
                tenor = tenors[0]
    elif financing_type in PRINCIPAL_FIELDS:
        principal = parse_amount(form.get(PRINCIPAL_FIELDS[financing_type]))

    if principal <= 0 or tenor <= 0:
        return {"principal": 0, "margin": 0, "tax": 0, "installment": 0, "tenor": tenor}

    # rounded to the cent so float noise never bumps the ceiling by one rupiah
    margin = round(principal * monthly_rate(financing_type) * tenor, 2)
    total = principal + tax + margin
    return {
        "principal": principal,
        "margin": margin,
        "tax": tax,
        "installment": math.ceil(total / tenor),
        "tenor": tenor,
    }


def build_details(financing_type, form, product=None):
    if financing_type == "Kredit Barang":
        return {
            "item_id": product.get("id"),
            "item_name": product.get("name"),
            "price": product.get("price"),
            "dp": product.get("dp"),
            "tax": product.get("tax"),
            "vendor_note": "Barang disediakan oleh Koperasi (Katalog)",
        }
    if financing_type == "Modal Usaha":
        return {
            "business_type": form.get("business_type"),
            "business_name": form.get("business_name"),
            "purpose": form.get("purpose"),
        }
    if financing_type == "Biaya Pelatihan":
        return {
            "training_type": form.get("training_type"),
            "training_name": form.get("training_name"),
        }
    return {
        "child_name": form.get("child_name"),
        "school_name": form.get("school_name"),
        "purpose": form.get("purpose"),
    }


def detail_badge(loan):
    """Short text shown next to a loan in the admin list."""
    details = loan.get("details") or {}
    if isinstance(details, str):
        try:
            details = json.loads(details)
        except ValueError:
            return None
    key = {
        "Kredit Barang": "item_name",
        "Modal Usaha": "business_name",
        "Biaya Pelatihan": "training_name",
        "Biaya Pendidikan": "child_name",
    }.get(loan.get("type"))
    if not key:
        return None
    return details.get(key) or (details.get("item") if key == "item_name" else None)
