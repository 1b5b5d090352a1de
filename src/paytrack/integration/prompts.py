from paytrack.models import CATEGORIES

EXTRACTION_INSTRUCTIONS = f"""
You are a financial data analyst.
Analyze the provided image. It may be a payment app screenshot (GPay, PhonePe, Paytm, Venmo, etc.),
a bank app receipt, or a photo of a physical bill or invoice.

Read text in any language and report field values in English.
Parse itemized bills, VAT, service charges and tips.
Infer the category from the merchant name when it is not stated.

STRICT DATA RULES:
1. amount: the numeric value only, without currency symbols or thousands separators.
2. currency: the currency symbol (₹, $, €, £).
3. date: formatted as YYYY-MM-DD.
4. merchant: the recipient of the money.
5. category: exactly one of [{", ".join(CATEGORIES)}].
6. status: one of completed, pending, failed.
7. notes: for bills, list the main items and quantities.

If a field is missing or unreadable, use "Not found".
confidenceScore: a number from 0.0 to 1.0 reflecting how visible and clear the image is.
""".strip()

EXTRACTION_PROMPT = (
    "Extract all relevant transaction details from this image. "
    "Be precise with currency and dates. Support all languages visible."
)

ASSISTANT_INSTRUCTIONS = (
    "You are the PayTrack assistant. Help users manage expenses, explain transaction details "
    "and provide financial insights based on their receipts."
)

_STRING_FIELDS = (
    "amount",
    "currency",
    "date",
    "time",
    "merchant",
    "sender",
    "paymentMethod",
    "transactionId",
    "status",
    "platform",
    "category",
    "notes",
)

REQUIRED_FIELDS = ("amount", "currency", "date", "merchant", "confidenceScore")

TRANSACTION_SCHEMA: dict = {
    "type": "object",
    "properties": {
        **{name: {"type": "string"} for name in _STRING_FIELDS},
        "confidenceScore": {"type": "number"},
    },
    "required": list(REQUIRED_FIELDS),
}
