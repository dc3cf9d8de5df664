import httpx
from flask import current_app, render_template

from ..utils import format_rupiah, format_date_id


def send_whatsapp(target, message):
    """Send a WhatsApp text through the Fonnte gateway; True when Fonnte accepted it."""
    token = current_app.config.get("FONNTE_TOKEN")
    if not token:
        current_app.logger.error("FONNTE_TOKEN is not set, WhatsApp to %s not sent", target)
        return False
    if not target:
        current_app.logger.warning("WhatsApp message without a target number dropped")
        return False

    try:
        response = httpx.post(
            current_app.config["FONNTE_URL"],
            data={"target": target, "message": message, "countryCode": "62"},
            headers={"Authorization": token},
        )
        result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        current_app.logger.error("WhatsApp send error to %s: %s", target, e)
        return False

    if result.get("status") is False:
        current_app.logger.error("Fonnte refused message to %s: %s", target, result.get("reason"))
        return False
    return True


def send_installment_reminder(profile, loan, installment):
    message = render_template(
        "whatsapp/installment_reminder.txt",
        name=profile.get("full_name") or "Anggota",
        loan_type=loan.get("type") or "Pembiayaan",
        amount=format_rupiah(installment.get("amount")),
        installment_number=installment.get("installment_number"),
        due_date=format_date_id(installment.get("due_date")),
    )
    return send_whatsapp(profile.get("phone"), message)
