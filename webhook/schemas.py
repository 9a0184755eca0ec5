from pydantic import BaseModel, ConfigDict, Field


class WebhookResponse(BaseModel):
    """
    Response schema for the webhook endpoint.

    Attributes
    ----------
    message : str
        Human readable outcome
    timestamp : str
        ISO-8601 time the response was produced
    processed : bool | None
        Whether the payload was recognized as an address event
    """
    message: str
    timestamp: str
    processed: bool | None = None

    model_config = ConfigDict(from_attributes=True)


class SampleWebhookResponse(WebhookResponse):
    """
    Response schema for the sample replay endpoint.
    """
    sample_data: dict = Field(serialization_alias="sampleData")


class HealthResponse(BaseModel):
    status: str
    timestamp: str
