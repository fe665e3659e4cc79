"""Message construction for proactive Teams messages.

Validates the text a caller wants to send and turns it into Bot Framework
schema objects: a message activity (optionally flagged to notify the
recipient) or the conversation parameters that start a channel thread.
"""

from botbuilder.core import MessageFactory
from botbuilder.core.teams import teams_notify_user
from botbuilder.schema import Activity, ConversationParameters
from botbuilder.schema.teams import ChannelInfo, TeamsChannelData
from pydantic import BaseModel, Field, field_validator


class ProactiveMessage(BaseModel):
    """Plain text content with an optional notify flag.

    Example:
        >>> message = ProactiveMessage(text="Build finished", notify=True)
    """

    text: str = Field(..., description="Message text", min_length=1)
    notify: bool = Field(default=False, description="Send an alert notification")

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject blank messages."""
        if not v.strip():
            raise ValueError("Message text cannot be blank")
        return v


def text_message(text: str) -> Activity:
    """Create a text message activity whose summary (shown in toasts) mirrors the text."""
    activity = MessageFactory.text(text)
    activity.summary = text
    return activity


def build_activity(message: ProactiveMessage) -> Activity:
    """Build the outgoing activity for a proactive message."""
    activity = text_message(message.text)
    if message.notify:
        teams_notify_user(activity)
    return activity


def channel_thread_parameters(channel_id: str, activity: Activity) -> ConversationParameters:
    """Build group conversation parameters that start a thread in a channel."""
    return ConversationParameters(
        is_group=True,
        channel_data=TeamsChannelData(channel=ChannelInfo(id=channel_id)),
        activity=activity,
    )
