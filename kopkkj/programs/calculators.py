"""Local calculators for the TAMASA, INFLIP and pawning programs.

None of these results are stored; the figures the cooperative actually
books come from the admin approval flows.
"""
from ..utils import safe_float


def tamasa_simulation(monthly_amount, months, gold_price):
    monthly_amount = max(safe_float(monthly_amount), 0)
    months = max(int(safe_float(months)), 0)
    gold_price = safe_float(gold_price)
    total = monthly_amount * months
    grams = total / gold_price if gold_price > 0 else 0
    return {"total_deposit": total, "total_gram": grams, "gold_price": gold_price}


def gram_estimate(amount, gold_price):
    gold_price = safe_float(gold_price)
    if gold_price <= 0:
        return 0
    return round(safe_float(amount) / gold_price, 4)


def inflip_roi(capital, renovation, sell_price):
    cost = safe_float(capital) + safe_float(renovation)
    profit = safe_float(sell_price) - cost
    roi = round(profit / cost * 100, 1) if cost > 0 else 0
    return {"total_cost": cost, "profit": profit, "roi_percent": roi}


def funding_progress(project):
    target = safe_float(project.get("target_amount"))
    collected = safe_float(project.get("collected_amount"))
    if target <= 0:
        return 0
    return min(round(collected / target * 100, 1), 100)


def pawn_simulation(weight, price_per_gram, appraisal_percent, tenor, ujrah_percent):
    """Gold pawn estimate; every negative input counts as zero."""
    weight = max(safe_float(weight), 0)
    price = max(safe_float(price_per_gram), 0)
    appraisal = max(safe_float(appraisal_percent), 0)
    tenor = max(safe_float(tenor), 0)
    ujrah = max(safe_float(ujrah_percent), 0)

    gold_value = weight * price
    max_loan = gold_value * appraisal / 100
    fee = max_loan * ujrah / 100 * tenor
    return {
        "gold_value": gold_value,
        "max_loan": max_loan,
        "ujrah_total": fee,
        "payoff": max_loan + fee,
    }
