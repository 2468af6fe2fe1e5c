"""Receipt OCR via the Azure Document Intelligence prebuilt receipt model."""
import asyncio
import logging
from datetime import date
from typing import Any

import httpx

from splity.schemas.receipt import Receipt, ReceiptItem

logger = logging.getLogger(__name__)

API_VERSION = "2024-11-30"
RECEIPT_MODEL = "prebuilt-receipt"


class ReceiptAnalysisError(Exception):
    """Raised when the OCR service fails or does not finish in time."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ReceiptAnalyzer:
    """
    Extracts merchant, date and line items from a receipt image URL.

    The service is asynchronous on its side: the analyze request returns
    ``202 Accepted`` with an ``Operation-Location`` header that is polled
    until the operation succeeds or fails.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: str,
        api_key: str,
        poll_interval: float = 1.0,
        max_polls: int = 60,
    ) -> None:
        self._http_client = http_client
        self.endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    @property
    def analyze_url(self) -> str:
        """URL of the analyze operation for the receipt model."""
        return (
            f"{self.endpoint}/documentintelligence/documentModels/"
            f"{RECEIPT_MODEL}:analyze?api-version={API_VERSION}"
        )

    async def analyze(self, url: str) -> Receipt:
        """
        Analyze the receipt image at ``url``.

        Raises:
            ReceiptAnalysisError: If the service reports a failure or does not
                finish within ``max_polls`` polls.
            httpx.HTTPError: On transport errors or error status codes.
        """
        headers = {"Ocp-Apim-Subscription-Key": self._api_key}
        response = await self._http_client.post(
            self.analyze_url,
            json={"urlSource": url},
            headers=headers,
        )
        response.raise_for_status()

        operation_url = response.headers.get("operation-location")
        if not operation_url:
            raise ReceiptAnalysisError("Analyze response has no Operation-Location header")

        for _ in range(self.max_polls):
            poll = await self._http_client.get(operation_url, headers=headers)
            poll.raise_for_status()
            body = poll.json()
            status = body.get("status")
            if status == "succeeded":
                return parse_receipt(body.get("analyzeResult") or {})
            if status == "failed":
                raise ReceiptAnalysisError(f"Receipt analysis failed: {body.get('error')}")
            await asyncio.sleep(self.poll_interval)

        raise ReceiptAnalysisError(f"Receipt analysis did not finish after {self.max_polls} polls")


def parse_receipt(analyze_result: dict[str, Any]) -> Receipt:
    """
    Build a Receipt from an ``analyzeResult`` payload.

    Fields of every recognized document are merged. Items whose total price
    is not a currency value are skipped; a missing quantity counts as 1.
    """
    receipt = Receipt()
    for document in analyze_result.get("documents") or []:
        fields = document.get("fields") or {}

        merchant = fields.get("MerchantName") or {}
        if merchant.get("type") == "string":
            receipt.merchant_name = merchant.get("valueString")

        transaction_date = fields.get("TransactionDate") or {}
        if transaction_date.get("type") == "date" and transaction_date.get("valueDate"):
            receipt.transaction_date = date.fromisoformat(transaction_date["valueDate"])

        items = fields.get("Items") or {}
        if items.get("type") != "array":
            continue
        for item_field in items.get("valueArray") or []:
            item = _parse_item(item_field)
            if item is not None:
                receipt.items.append(item)

    return receipt


def _parse_item(item_field: dict[str, Any]) -> ReceiptItem | None:
    if item_field.get("type") != "object":
        return None
    values = item_field.get("valueObject") or {}

    total_price = values.get("TotalPrice") or {}
    if total_price.get("type") != "currency":
        return None
    amount = (total_price.get("valueCurrency") or {}).get("amount")
    if amount is None:
        return None

    description = values.get("Description") or {}
    quantity = (values.get("Quantity") or {}).get("valueNumber")
    return ReceiptItem(
        description=description.get("valueString") if description.get("type") == "string" else None,
        total_price=amount,
        quantity=quantity or 1,
    )
