import asyncio
import logging
import traceback
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Union

import requests
import websockets
from pydantic import BaseModel
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK, WebSocketException

from voice_relay.audio.playback import PlaybackQueue
from voice_relay.config.constants import (
    CONNECTION_TIMEOUT,
    CREDENTIAL_HEADER,
    DEFAULT_API_BASE,
    HANDSHAKE_TIMEOUT,
    LOGGER_NAME,
    MESSAGE_TYPE_AGENT_RESPONSE,
    MESSAGE_TYPE_AUDIO,
    MESSAGE_TYPE_CONVERSATION_METADATA,
    MESSAGE_TYPE_INTERRUPTION,
    MESSAGE_TYPE_PING,
    MESSAGE_TYPE_USER_TRANSCRIPT,
    METADATA_GRACE_PERIOD,
    SIGNED_URL_PATH,
    WS_MAX_SIZE,
)
from voice_relay.exceptions import HandshakeError, MalformedMessageError, TransportError
from voice_relay.models.remote_schemas import (
    AgentResponseMessage,
    AudioMessage,
    ConversationInitiationMetadataMessage,
    InterruptionMessage,
    PingMessage,
    PongMessage,
    RemoteMessage,
    SignedUrlResponse,
    UserAudioChunkMessage,
    UserTranscriptMessage,
    parse_remote_message,
)

logger = logging.getLogger(LOGGER_NAME)

LostHandler = Callable[[Optional[TransportError]], Awaitable[None]]
TextHandler = Callable[[str, str], None]


class LinkState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class RemoteLink:
    """
    Duplex connection to the conversational AI agent for one session.

    Lifecycle is CONNECTING -> OPEN -> CLOSED. A closed link is never reopened;
    build a new RemoteLink to reconnect. Agent audio goes straight into the
    session's PlaybackQueue and interruptions flush it.
    """

    def __init__(
        self,
        api_key: str,
        agent_id: str,
        playback: PlaybackQueue,
        api_base: str = DEFAULT_API_BASE,
        metadata_timeout: float = METADATA_GRACE_PERIOD,
    ):
        self.api_key = api_key
        self.agent_id = agent_id
        self.playback = playback
        self.api_base = api_base.rstrip("/")
        self.metadata_timeout = metadata_timeout
        self.state = LinkState.CONNECTING
        self.conversation_id: Optional[str] = None
        self.ws = None
        self._recv_task: Optional[asyncio.Task] = None
        self._metadata_received = asyncio.Event()
        self._disconnected = False
        self._lost_handler: Optional[LostHandler] = None
        self._text_handler: Optional[TextHandler] = None

        self._handlers: Dict[str, Callable[[RemoteMessage], Awaitable[None]]] = {
            MESSAGE_TYPE_CONVERSATION_METADATA: self._handle_metadata,
            MESSAGE_TYPE_AUDIO: self._handle_audio,
            MESSAGE_TYPE_AGENT_RESPONSE: self._handle_agent_response,
            MESSAGE_TYPE_USER_TRANSCRIPT: self._handle_user_transcript,
            MESSAGE_TYPE_INTERRUPTION: self._handle_interruption,
            MESSAGE_TYPE_PING: self._handle_ping,
        }

    @property
    def is_open(self) -> bool:
        return self.state is LinkState.OPEN

    def set_handlers(
        self,
        lost_handler: Optional[LostHandler] = None,
        text_handler: Optional[TextHandler] = None,
    ) -> None:
        """
        Set observers for transport loss and informational text.

        Args:
            lost_handler: Async function called once if the transport drops
                without an explicit disconnect(); receives the TransportError
                for abnormal closure or None for a normal close by the agent
            text_handler: Called with (kind, text) for agent responses and
                user transcripts
        """
        self._lost_handler = lost_handler
        self._text_handler = text_handler

    async def connect(self) -> Optional[str]:
        """
        Exchange the credential for a signed URL and open the websocket.

        Returns:
            The conversation id, or None if the agent has not announced it
            within the grace period (it is still recorded when it arrives)

        Raises:
            HandshakeError: if the signed URL request is rejected
            TransportError: if the websocket cannot be opened
        """
        if self.state is not LinkState.CONNECTING:
            raise TransportError(f"Cannot connect a link in state {self.state.value}")

        signed_url = await self._get_signed_url()

        try:
            logger.info("Connecting to conversational agent...")
            self.ws = await asyncio.wait_for(
                websockets.connect(signed_url, max_size=WS_MAX_SIZE, compression=None),
                timeout=CONNECTION_TIMEOUT,
            )
        except asyncio.TimeoutError as e:
            self.state = LinkState.CLOSED
            raise TransportError(f"Timeout opening agent websocket (after {CONNECTION_TIMEOUT}s)") from e
        except (OSError, WebSocketException) as e:
            self.state = LinkState.CLOSED
            logger.debug(f"Connection error details: {traceback.format_exc()}")
            raise TransportError(f"Could not open agent websocket: {e}") from e

        self.state = LinkState.OPEN
        logger.info("Connected to conversational agent")
        self._recv_task = asyncio.create_task(self._recv_loop())

        try:
            await asyncio.wait_for(self._metadata_received.wait(), timeout=self.metadata_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"No conversation metadata within {self.metadata_timeout}s, continuing")

        if self.state is LinkState.CLOSED:
            raise TransportError("Agent closed the connection during setup")
        return self.conversation_id

    async def _get_signed_url(self) -> str:
        url = f"{self.api_base}{SIGNED_URL_PATH}"
        logger.info(f"Requesting signed URL for agent {self.agent_id}")
        try:
            response = await asyncio.to_thread(
                requests.get,
                url,
                params={"agent_id": self.agent_id},
                headers={CREDENTIAL_HEADER: self.api_key},
                timeout=HANDSHAKE_TIMEOUT,
            )
        except requests.RequestException as e:
            self.state = LinkState.CLOSED
            raise HandshakeError(f"Signed URL request failed: {e}") from e

        if not response.ok:
            self.state = LinkState.CLOSED
            raise HandshakeError(f"Failed to get signed URL: {response.status_code}", status_code=response.status_code)

        try:
            return SignedUrlResponse(**response.json()).signed_url
        except (ValueError, TypeError) as e:
            self.state = LinkState.CLOSED
            raise HandshakeError(f"Invalid signed URL response: {e}", status_code=response.status_code) from e

    async def send_audio(self, pcm: bytes) -> bool:
        """
        Send one utterance of 16kHz mono PCM to the agent.

        Audio sent while the link is not open is dropped.

        Returns:
            bool: True if the frame was written to the websocket
        """
        if self.state is not LinkState.OPEN:
            logger.debug(f"Link not open, dropping {len(pcm)} bytes of user audio")
            return False
        return await self._send(UserAudioChunkMessage.from_pcm(pcm))

    async def _send(self, message: BaseModel) -> bool:
        try:
            await self.ws.send(message.model_dump_json())
            return True
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending: {e}")
            return False

    async def _recv_loop(self) -> None:
        """Receive and dispatch frames until the transport closes."""
        error: Optional[TransportError] = None
        try:
            while self.state is LinkState.OPEN:
                raw = await self.ws.recv()
                try:
                    await self._dispatch(raw)
                except Exception as e:
                    logger.error(f"Error handling agent message: {e}", exc_info=True)
        except ConnectionClosedOK:
            logger.info("Agent connection closed")
        except ConnectionClosedError as e:
            logger.warning(f"Agent connection dropped: {e}")
            error = TransportError(f"Agent connection dropped: {e}")

        self.state = LinkState.CLOSED
        self._metadata_received.set()

        if self._disconnected or self._lost_handler is None:
            return
        try:
            await self._lost_handler(error)
        except Exception as e:
            logger.error(f"Error in connection lost handler: {e}", exc_info=True)

    async def _dispatch(self, raw: Union[str, bytes]) -> None:
        """Route one inbound frame by its kind. Replies complete before returning."""
        try:
            message = parse_remote_message(raw)
            if message is None:
                logger.debug("Ignoring unhandled message kind")
                return
            await self._handlers[message.type](message)
        except MalformedMessageError as e:
            logger.warning(f"Dropping malformed message: {e}")

    async def _handle_metadata(self, message: ConversationInitiationMetadataMessage) -> None:
        self.conversation_id = message.conversation_initiation_metadata_event.conversation_id
        logger.info(f"Conversation started: {self.conversation_id}")
        self._metadata_received.set()

    async def _handle_audio(self, message: AudioMessage) -> None:
        pcm = message.pcm()
        if pcm:
            self.playback.enqueue(pcm)

    async def _handle_agent_response(self, message: AgentResponseMessage) -> None:
        text = message.agent_response_event.agent_response
        logger.info(f"Agent: {text}")
        if self._text_handler:
            self._text_handler(MESSAGE_TYPE_AGENT_RESPONSE, text)

    async def _handle_user_transcript(self, message: UserTranscriptMessage) -> None:
        text = message.user_transcription_event.user_transcript
        logger.info(f"User: {text}")
        if self._text_handler:
            self._text_handler(MESSAGE_TYPE_USER_TRANSCRIPT, text)

    async def _handle_interruption(self, message: InterruptionMessage) -> None:
        logger.info("Interrupted by user")
        self.playback.flush()

    async def _handle_ping(self, message: PingMessage) -> None:
        await self._send(PongMessage(event_id=message.ping_event.event_id))

    async def disconnect(self) -> None:
        """Close the websocket and stop playback. Safe to call more than once."""
        if self._disconnected:
            return
        self._disconnected = True
        self.state = LinkState.CLOSED
        self._metadata_received.set()

        task = self._recv_task
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self.ws is not None:
            try:
                await self.ws.close()
            except (OSError, WebSocketException) as e:
                logger.warning(f"Error closing agent websocket: {e}")
            self.ws = None

        self.playback.stop()
        logger.info("Agent link closed")
