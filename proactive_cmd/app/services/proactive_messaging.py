"""
Proactive Messaging Service for Microsoft Teams

Sends bot-initiated messages into Teams conversations without an incoming
request: a message to a user conversation, a reply into a channel thread, or
a brand new channel thread. Each operation issues exactly one connector call,
executed through the shared resilience policy.
"""

import logging
import uuid
from typing import Optional

# Bot Framework imports
from botbuilder.schema import ConversationResourceResponse, ResourceResponse
from botframework.connector.aio import ConnectorClient
from botframework.connector.auth import MicrosoftAppCredentials

from ..config import Settings
from ..models.messages import ProactiveMessage, build_activity, channel_thread_parameters
from .resilience import AsyncPolicy, create_policy

logger = logging.getLogger(__name__)


class ProactiveMessagingService:
    """
    Service for sending proactive messages to Teams conversations.

    The resilience policy is owned by the caller and passed in, so breaker
    state is shared by every call made through this service instance.
    """

    def __init__(
        self,
        policy: AsyncPolicy,
        settings: Optional[Settings] = None
    ):
        """
        Initialize the proactive messaging service.

        Args:
            policy: Resilience policy wrapped around every connector call
            settings: Tenant and timeout configuration
        """
        self.policy = policy
        self.settings = settings or Settings()

    def _connector(self, app_id: str, app_password: str, service_url: str) -> ConnectorClient:
        credentials = MicrosoftAppCredentials(
            app_id,
            app_password,
            channel_auth_tenant=self.settings.tenant_id
        )
        # Trust the service URL before the first authenticated request
        MicrosoftAppCredentials.trust_service_url(service_url)

        connector = ConnectorClient(credentials, base_url=service_url)
        connector.config.connection.timeout = self.settings.connector_timeout_seconds
        return connector

    async def _send(
        self,
        app_id: str,
        app_password: str,
        service_url: str,
        conversation_id: str,
        message: ProactiveMessage,
        correlation_id: str
    ) -> ResourceResponse:
        activity = build_activity(message)

        async with self._connector(app_id, app_password, service_url) as connector:
            response = await self.policy.execute(
                lambda: connector.conversations.send_to_conversation(conversation_id, activity)
            )

        logger.info(
            f"[{correlation_id}] Message sent to conversation {conversation_id}. "
            f"Response ID: {response.id}"
        )
        return response

    async def send_to_user(
        self,
        app_id: str,
        app_password: str,
        service_url: str,
        conversation_id: str,
        message: str,
        notify: bool = False,
        correlation_id: Optional[str] = None
    ) -> ResourceResponse:
        """
        Send a text message to a user conversation.

        Args:
            app_id: Microsoft App ID for the bot
            app_password: Microsoft App Password for the bot
            service_url: Service URL for the Teams channel
            conversation_id: Teams conversation ID
            message: Text message to send
            notify: Alert the user with a notification
            correlation_id: Optional correlation ID for tracking

        Returns:
            ResourceResponse with the ID of the sent activity
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        logger.info(
            f"[{correlation_id}] Sending user message to conversation {conversation_id} "
            f"via {service_url} (notify={notify})"
        )
        return await self._send(
            app_id,
            app_password,
            service_url,
            conversation_id,
            ProactiveMessage(text=message, notify=notify),
            correlation_id,
        )

    async def send_to_thread(
        self,
        app_id: str,
        app_password: str,
        service_url: str,
        conversation_id: str,
        message: str,
        notify: bool = False,
        correlation_id: Optional[str] = None
    ) -> ResourceResponse:
        """
        Send a text message into an existing channel thread.

        Args:
            conversation_id: Conversation ID of the channel thread

        Returns:
            ResourceResponse with the ID of the sent activity
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        logger.info(
            f"[{correlation_id}] Sending message to channel thread {conversation_id} "
            f"via {service_url} (notify={notify})"
        )
        return await self._send(
            app_id,
            app_password,
            service_url,
            conversation_id,
            ProactiveMessage(text=message, notify=notify),
            correlation_id,
        )

    async def create_channel_thread(
        self,
        app_id: str,
        app_password: str,
        service_url: str,
        channel_id: str,
        message: str,
        correlation_id: Optional[str] = None
    ) -> ConversationResourceResponse:
        """
        Start a new thread in a Teams channel.

        Args:
            channel_id: Teams channel ID the thread is created in
            message: Text of the thread's first message

        Returns:
            ConversationResourceResponse with the new thread's conversation ID
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        logger.info(f"[{correlation_id}] Creating thread in channel {channel_id} via {service_url}")

        parameters = channel_thread_parameters(
            channel_id,
            build_activity(ProactiveMessage(text=message)),
        )

        async with self._connector(app_id, app_password, service_url) as connector:
            response = await self.policy.execute(
                lambda: connector.conversations.create_conversation(parameters)
            )

        logger.info(
            f"[{correlation_id}] Thread created in channel {channel_id}. "
            f"Conversation ID: {response.id}"
        )
        return response


def create_proactive_messaging_service(
    settings: Optional[Settings] = None
) -> ProactiveMessagingService:
    """
    Factory function to create a ProactiveMessagingService with its own policy.

    Args:
        settings: Configuration (defaults to environment variables)

    Returns:
        Configured ProactiveMessagingService instance
    """
    settings = settings or Settings.from_env()
    return ProactiveMessagingService(create_policy(settings), settings)


__all__ = [
    'ProactiveMessagingService',
    'create_proactive_messaging_service'
]
