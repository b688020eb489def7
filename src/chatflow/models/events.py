"""Normalized inbound events handed to the dispatcher by a channel."""

from pydantic import BaseModel


class InboundEvent(BaseModel):
    """A single inbound messaging event.

    A text message may carry the payload of the quick reply that produced
    it. A postback (button click, "Get Started") carries only a payload.
    """

    user_id: str
    text: str | None = None
    quick_reply_payload: str | None = None
    postback_payload: str | None = None

    @property
    def is_postback(self) -> bool:
        return self.postback_payload is not None
