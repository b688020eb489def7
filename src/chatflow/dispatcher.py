"""Per-event entry point: routes one inbound event through the flow engine.

The dispatcher is the boundary where failures stop. Whatever goes wrong in a
turn (a send fails, the responder times out, a flow loops) is logged and the
user gets the configured apology instead.
"""

import time

from .channels.base import GenerativeResponder, MessagingSink, ProfileProvider
from .flows.context import TurnContext
from .flows.engine import FlowEngine
from .infrastructure.logging_config import get_logger, turn_context
from .infrastructure.metrics import record_turn
from .infrastructure.session_store import SessionStore
from .models import InboundEvent, Settings, UserProfile, get_settings

logger = get_logger(__name__)

# Payloads with built-in handling when no trigger claims them
PAYLOAD_FLOWS = {
    "GET_STARTED": "welcome",
    "MAIN_MENU": "main_menu",
}
RESTART_PAYLOAD = "RESTART"
DONE_PAYLOAD = "DONE"


class MessageDispatcher:
    """Handles inbound events one turn at a time per user.

    Routing for a text message:
    1. If a flow is active and its step waits for input, resume it.
    2. Otherwise start the flow whose trigger matches the text.
    3. Otherwise handle the quick-reply payload that came with it, if any.
    4. Otherwise answer with the generative responder.

    Postbacks skip straight to payload handling.
    """

    def __init__(
        self,
        engine: FlowEngine,
        store: SessionStore,
        sink: MessagingSink,
        responder: GenerativeResponder,
        profiles: ProfileProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.sink = sink
        self.responder = responder
        self.profiles = profiles
        self.settings = settings or get_settings()

    async def handle(self, event: InboundEvent) -> str:
        """Process one event to completion.

        Returns:
            The route that handled the event (flow_input, trigger, payload,
            ai, unsupported or error).
        """
        user_id = event.user_id
        start_time = time.perf_counter()
        route = "unsupported"
        status = "success"

        event_kind = "postback" if event.is_postback else "text" if event.text else "other"

        async with self.store.lock(user_id):
            with turn_context(user_id, event_kind=event_kind):
                try:
                    profile = await self._ensure_profile(user_id)

                    if event.is_postback:
                        logger.info("postback_received", payload=event.postback_payload)
                        route = await self._handle_payload(
                            user_id,
                            event.postback_payload,
                            profile,
                            self.engine.new_turn(user_id),
                        )
                    elif event.text:
                        route = await self._handle_text(event, profile)
                    else:
                        await self.sink.send_text(user_id, self.settings.unsupported_message)
                except Exception:
                    status = "error"
                    logger.exception("turn_failed", route=route)
                    await self._send_error(user_id)
                    route = "error"
                finally:
                    record_turn(route, status, time.perf_counter() - start_time)

        return route

    async def _ensure_profile(self, user_id: str) -> UserProfile | None:
        profile = self.store.get_profile(user_id)
        if profile is not None or self.profiles is None:
            return profile

        try:
            profile = await self.profiles.fetch_profile(user_id)
        except Exception:
            logger.warning("profile_fetch_failed", exc_info=True)
            return None

        if profile is not None:
            self.store.set_profile(user_id, profile)
        return profile

    async def _handle_text(self, event: InboundEvent, profile: UserProfile | None) -> str:
        user_id = event.user_id
        text = event.text
        logger.info("message_received", text=text)

        self.store.append_message(user_id, text, from_bot=False)
        context = self.engine.new_turn(user_id, user_input=text)

        flow, step = self.store.flow_state(user_id)
        if flow and step and await self.engine.handle_flow_input(user_id, text, context):
            return "flow_input"

        flow_name = self.engine.check_triggers(text)
        if flow_name and await self.engine.start_flow(user_id, flow_name, context):
            return "trigger"

        if event.quick_reply_payload:
            return await self._handle_payload(
                user_id, event.quick_reply_payload, profile, context
            )

        await self._ai_reply(user_id, text, profile)
        return "ai"

    async def _handle_payload(
        self,
        user_id: str,
        payload: str,
        profile: UserProfile | None,
        context: TurnContext,
    ) -> str:
        flow_name = self.engine.check_triggers(payload)
        if flow_name and await self.engine.start_flow(user_id, flow_name, context):
            return "trigger"

        if payload in PAYLOAD_FLOWS:
            await self.engine.start_flow(user_id, PAYLOAD_FLOWS[payload], context)
        elif payload == RESTART_PAYLOAD:
            self.store.reset(user_id)
            await self.engine.start_flow(user_id, PAYLOAD_FLOWS["GET_STARTED"], context)
        elif payload == DONE_PAYLOAD:
            await self.sink.send_text(user_id, self.settings.done_message)
            self.store.append_message(user_id, self.settings.done_message, from_bot=True)
        else:
            await self._ai_reply(user_id, f"User selected: {payload}", profile)

        return "payload"

    async def _ai_reply(self, user_id: str, text: str, profile: UserProfile | None) -> None:
        await self.sink.send_typing(user_id)
        history = self.store.history(user_id)
        reply = await self.responder.complete(text, history, profile)
        await self.sink.send_text(user_id, reply)
        self.store.append_message(user_id, reply, from_bot=True)

    async def _send_error(self, user_id: str) -> None:
        try:
            await self.sink.send_text(user_id, self.settings.fallback_message)
        except Exception:
            logger.exception("fallback_send_failed")
