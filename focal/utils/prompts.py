"""Default prompts for receipt and voice-note extraction.

Keeping prompts in a central location makes it easier to iterate on
their content and keep every provider asking for the same schema.
Each builder takes the reference date explicitly so the "default to
today" rule is deterministic under test.
"""

from __future__ import annotations

import datetime as dt
from textwrap import dedent
from typing import Sequence

from focal.models.enums import DEFAULT_CATEGORIES, OCR_CATEGORIES


def _category_list(categories: Sequence[str]) -> str:
    return ", ".join(categories or DEFAULT_CATEGORIES)


def get_receipt_instruction(categories: Sequence[str], today: dt.date) -> str:
    """Return the system instruction for vision-capable providers.

    The model is asked for merchant, date, total, category and line
    items, with the category restricted to ``categories``.
    """
    current = today.isoformat()
    return dedent(
        f"""
        You are a receipt data extraction assistant. Extract the following information from receipt images:
        - merchant: Store/restaurant name
        - date: Transaction date in YYYY-MM-DD format
        - total: Total amount (number only, no currency symbols or codes)
        - category: One of: {_category_list(categories)}
        - lineItems: Array of items with description, quantity, and price

        Important:
        - Extract the raw numeric total value without any currency symbols
        - If date is unclear or not visible, use {current} (today's date: {current})
        - If lineItems are not visible or unclear, return an empty array
        - All fields are required and must match the schema
        """
    ).strip()


def get_ocr_structuring_prompt(today: dt.date) -> str:
    """Return the system prompt that turns raw OCR text into the expense schema."""
    current = today.isoformat()
    categories = ", ".join(f'"{c}"' for c in OCR_CATEGORIES)
    return dedent(
        f"""
        You are an expert AI data extraction assistant.

        Your task is to analyze the provided OCR text from a receipt and extract the specified information.
        You must format your response as a single, valid JSON object that strictly adheres to the provided schema.

        Constraints:
        1. Strict Schema: Only output the JSON object. Do not add any explanatory text or markdown formatting.
        2. Date Format: The date must be in YYYY-MM-DD format. If the year is not specified, use {today.year} (current year).
        3. Numeric Fields: "total", "quantity", and "price" must be numbers (float or int), not strings. Do not include currency symbols.
        4. Category Inference: Analyze the merchant name and the line items to determine the most appropriate category from: [{categories}].
        5. Line Items:
           - Extract all individual items listed.
           - If quantity is not explicitly mentioned, assume quantity is 1.0.
           - If quantity is specified (e.g., "2x Item"), use that quantity.
           - The "price" for a line item should be the total price for that line.
        6. OCR Messiness: The text will be "dirty" from OCR. Do your best to interpret misspelled words, cut off words, and fragmented lines.
        7. Total: The "total" field must be the final amount paid, usually labeled "TOTAL", "AMOUNT", or similar.

        If the date is unclear or not visible, use {current} (today's date).
        If lineItems are not visible or unclear, return an empty array.
        """
    ).strip()


def get_ocr_user_prompt(ocr_text: str) -> str:
    return dedent(
        """
        Please extract the information from the following receipt text according to the schema.

        Receipt text:
        {text}

        Extract the merchant, date, total, category, and line items. Return ONLY a valid JSON object with this structure:
        {{
          "merchant": "Store Name",
          "date": "YYYY-MM-DD",
          "total": 123.45,
          "category": "Food & Drink",
          "lineItems": [
            {{"description": "Item name", "quantity": 1.0, "price": 10.00}}
          ]
        }}
        """
    ).strip().format(text=ocr_text)


def get_audio_instruction(categories: Sequence[str], local_date: dt.date, currency: str) -> str:
    """Return the instruction for extracting expenses from a voice note."""
    current = local_date.isoformat()
    return dedent(
        f"""
        You are an expense logging assistant. Listen to the recording and extract every expense the speaker mentions.
        A single recording may describe several purchases; return one entry per purchase, or an empty list if none is described.

        For each expense return:
        - merchant: Store, restaurant or payee name (use a short description if no name is said)
        - date: YYYY-MM-DD. Today is {current} in the speaker's timezone; resolve relative dates such as "yesterday" against it and use {current} when no date is said
        - total: Amount as a number, no currency symbols. Amounts are in {currency} unless another currency is explicitly said
        - category: One of: {_category_list(categories)}
        - lineItems: Items with description, quantity, and price; an empty array if none are described

        Respond with a JSON object of the form {{"receipts": [ ... ]}}.
        """
    ).strip()
