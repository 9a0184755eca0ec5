from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Request
from dishka.integrations.fastapi import inject
from dishka import FromComponent

from core.exceptions import WebhookProcessingException
from webhook.schemas import WebhookResponse, SampleWebhookResponse
from webhook.usecases import IngestWebhookUseCase

router = APIRouter(tags=["Webhook"])

SAMPLE_NOTIFICATION = {
    "address": "0xff5ded1d122a0c2279fcf65b42f2ff6d1afebae4",
    "amount": "0.001",
    "asset": "ETH",
    "blockNumber": 2913059,
    "counterAddress": "0x690B9A9E9aa1C9dB991C7721a92d351Db4FaC990",
    "txId": "0x062d236ccc044f68194a04008e98c3823271dc26160a4db9ae9303f9ecfc7bf6",
    "type": "native",
    "chain": "ethereum-sepolia",
    "subscriptionType": "ADDRESS_EVENT",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/webhook", response_model=WebhookResponse)
@inject
async def receive_webhook(
    request: Request,
    use_case: Annotated[
        IngestWebhookUseCase, FromComponent("webhook")
    ]
) -> WebhookResponse:
    """
    Receive a notification from the address monitoring service.

    Unrecognized payloads are still acknowledged with 200 so the
    service does not retry them.

    Parameters
    ----------
    request : Request
        Raw request, the body is parsed as untyped JSON
    use_case : IngestWebhookUseCase
        Use case for ingesting the notification

    Returns
    -------
    WebhookResponse
        Acknowledgement with the recognition flag
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise WebhookProcessingException() from e

    result = await use_case(payload)
    if result.processed:
        message = "Tatum notification received and logged"
    else:
        message = "Webhook received but format not recognized"

    return WebhookResponse(
        message=message,
        timestamp=_timestamp(),
        processed=result.processed
    )


@router.post("/test", response_model=SampleWebhookResponse)
@inject
async def replay_sample_webhook(
    use_case: Annotated[
        IngestWebhookUseCase, FromComponent("webhook")
    ]
) -> SampleWebhookResponse:
    """
    Replay a fixed sample notification through the ingestion path.
    """
    result = await use_case(SAMPLE_NOTIFICATION)
    return SampleWebhookResponse(
        message="Test webhook processed successfully",
        timestamp=_timestamp(),
        processed=result.processed,
        sample_data=SAMPLE_NOTIFICATION
    )
