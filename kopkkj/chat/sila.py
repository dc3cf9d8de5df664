"""SILA, the member-facing assistant backed by Gemini.

The member's balances, loans and recent transactions are rendered into a
text snapshot that is sent as the first user turn, together with the
product knowledge prompt below.
"""
from flask import current_app
from google import genai

from ..utils import SAVINGS_TYPES, format_rupiah, format_gram, format_date_id, safe_float

FALLBACK_REPLY = "Maaf Kak, SILA lagi gangguan koneksi. Mohon tanya ulang ya! 🙏"

BASE_SYSTEM_PROMPT = """
Kamu adalah SILA (System Informasi Layanan Anggota), CS Virtual Koperasi KKJ yang Cerdas, Ramah, dan Solutif.

--- DATABASE PENGETAHUAN PRODUK ---

A. 9 JENIS SIMPANAN YANG TERSEDIA:
1. Simpanan Pokok (Simpok)
2. Simpanan Wajib (Simwa)
3. Simpanan Masa Depan (Simade)
4. Tabungan Progresif (TaPro) -> Saldo utama untuk transaksi digital & PPOB.
5. Simpanan Pendidikan (Sipena)
6. Simpanan Walimah (Siwalima)
7. Simpanan Haji & Umroh (Siuji)
8. Simpanan Qurban (Siqurma)
9. Simpanan Hari Raya (Sihara)

B. 4 JENIS PEMBIAYAAN & MARGIN:
1. Kredit Barang (Margin: Setara 10% per tahun)
2. Modal Usaha (Margin: Setara 10% per tahun)
3. Biaya Pelatihan (Margin: 0.6% per bulan)
4. Biaya Pendidikan (Margin: 0.6% per bulan)

C. PROGRAM UNGGULAN:
- TAMASA (Tabungan Emas Anggota): Menabung emas mulai Rp 10.000, bisa dicetak fisik.
- INFLIP (Investasi Flipping Property): Investasi properti jangka panjang.
- Pegadaian Emas Syariah.

D. LAYANAN LAIN:
- PPOB (Pulsa, Listrik, PDAM).
- Belanja di Toko Koperasi.
- Pembagian LHU (Laba Hasil Usaha).

--- ATURAN MENJAWAB ---
1. Jika user tanya "Ada simpanan apa aja?", jawab dari poin A. Jangan sebutkan saldo user.
   Jika user tanya "Simpanan SAYA apa aja?", baru gunakan data pribadi user.
2. Sisa hutang = jumlah semua angsuran yang BELUM LUNAS. Jangan gunakan plafon awal sebagai sisa hutang.
3. Gunakan **bold** untuk angka uang dan nama produk penting. Bersikaplah sopan dan membantu.
"""


def remaining_debt(loan, installments):
    """Unpaid installment total and the nearest due date of one loan."""
    unpaid = [i for i in installments if i.get("loan_id") == loan.get("id") and i.get("status") != "paid"]
    unpaid.sort(key=lambda i: str(i.get("due_date") or ""))
    total = sum(safe_float(i.get("amount")) for i in unpaid)
    if total <= 0:
        total = safe_float(loan.get("remaining_amount") if loan.get("remaining_amount") is not None else loan.get("amount"))
    next_due = format_date_id(unpaid[0].get("due_date")) if unpaid else "Lunas"
    return total, next_due


def build_context(profile, loans=(), installments=(), transactions=(), tamasa=None, inflip_total=0, gold_price=0):
    if loans:
        loan_lines = []
        for loan in loans:
            total, next_due = remaining_debt(loan, installments)
            loan_lines.append(
                f"- **{loan.get('type') or 'Pinjaman'}**:\n"
                f"   • Sisa Kewajiban: **{format_rupiah(total)}**\n"
                f"   • Jatuh Tempo Terdekat: **{next_due}**"
            )
        loan_text = "\n\n".join(loan_lines)
    else:
        loan_text = "Tidak ada pinjaman aktif. Keuangan Kakak sehat!"

    if transactions:
        trx_text = "\n".join(
            f"- {(t.get('type') or '').upper()} {format_rupiah(t.get('amount'))} ({t.get('status')})"
            for t in transactions
        )
    else:
        trx_text = "Belum ada riwayat transaksi."

    grams = safe_float((tamasa or {}).get("total_gram"))
    savings_text = "\n".join(
        f"- {label}: **{format_rupiah(profile.get(column))}**" for label, column in SAVINGS_TYPES.values()
    )
    return (
        "[DATA PRIBADI USER SAAT INI]\n"
        f"Nama: {profile.get('full_name')}\n\n"
        "[DOMPET & SIMPANAN USER]\n"
        f"{savings_text}\n\n"
        "[INVESTASI USER]\n"
        f"- Emas (TAMASA): **{format_gram(grams)} gr** (Setara {format_rupiah(grams * safe_float(gold_price))})\n"
        f"- Properti (INFLIP): **{format_rupiah(inflip_total)}**\n\n"
        "[STATUS PINJAMAN USER]\n"
        f"{loan_text}\n\n"
        "[RIWAYAT TRANSAKSI TERAKHIR]\n"
        f"{trx_text}\n"
    )


def build_contents(message, history, context, name):
    contents = [
        {"role": "user", "parts": [{"text": BASE_SYSTEM_PROMPT + "\n\n" + context}]},
        {"role": "model", "parts": [{"text": f"Halo Kak {name}! SILA siap membantu dengan data lengkap dan akurat."}]},
    ]
    for turn in history or []:
        if not isinstance(turn, dict):
            continue
        role = "model" if turn.get("role") == "model" else "user"
        contents.append({"role": role, "parts": [{"text": str(turn.get("text") or turn.get("parts") or "")}]})
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def ask_sila(message, history, context, name="Anggota"):
    """Send the conversation to Gemini; any failure yields the fixed apology."""
    api_key = current_app.config.get("GEMINI_API_KEY")
    if not api_key:
        current_app.logger.error("GEMINI_API_KEY is not set")
        return FALLBACK_REPLY
    try:
        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=current_app.config["GEMINI_MODEL"],
            contents=build_contents(message, history, context, name),
        )
    except Exception:
        current_app.logger.exception("Gemini request failed")
        return FALLBACK_REPLY
    return response.text or FALLBACK_REPLY
