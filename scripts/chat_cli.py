#!/usr/bin/env python3
"""Interactive CLI to test the chat flow without a browser.

Type messages as if using the text box in the web UI. Each line is sent as
a text_message event through a SessionManager backed by the Gemini API.
"""

import asyncio

from src.config import get_settings
from src.core.events import OutboundEvent
from src.core.session import ConversationSession
from src.core.session_manager import SessionManager
from src.services.llm.gemini import GeminiService


class PrintingSender:
    """EventSender that prints events to the terminal."""

    async def send_event(self, event: OutboundEvent) -> None:
        if event.type == "user_message":
            return  # Already visible as typed input
        if event.type == "ai_response":
            print(f"\n🤖 Rev: {event.text}\n")
        else:
            print(f"  📡 {event.to_wire()}")


def print_history(session: ConversationSession) -> None:
    """Print the conversation so far."""
    if not session.history:
        print("  (no turns yet)")
        return
    for turn in session.history:
        print(f"  {turn.role.value:>5}: {turn.text}")


def new_manager(client: GeminiService, sender: PrintingSender) -> SessionManager:
    settings = get_settings()
    session = ConversationSession(
        language_code=settings.default_language_code,
        history_window=settings.history_window,
    )
    return SessionManager(session, client, sender, sample_rate=settings.audio_sample_rate)


async def main():
    print("=" * 60)
    print("🏍️  Voice Chat Relay - Text CLI")
    print("=" * 60)
    print("\nCommands: /history, /lang <code>, /reset, /quit\n")

    settings = get_settings()
    client = GeminiService(settings=settings)
    sender = PrintingSender()
    manager = new_manager(client, sender)

    if not client.is_configured:
        print("⚠️  GOOGLE_API_KEY not set - replies will be error messages.\n")

    try:
        while True:
            user_input = (await asyncio.to_thread(input, "👤 You: ")).strip()

            if not user_input:
                continue

            if user_input.lower() == "/quit":
                print("\n👋 Goodbye!")
                break

            if user_input.lower() == "/history":
                print_history(manager.session)
                continue

            if user_input.lower().startswith("/lang"):
                manager.session.set_language(user_input[5:])
                print(f"  🌐 Language: {manager.session.language_code}")
                continue

            if user_input.lower() == "/reset":
                await manager.close()
                manager = new_manager(client, sender)
                print("\n🔄 New conversation started!\n")
                continue

            await manager.send_text(user_input)
            await manager.wait_for_pending()

    except (KeyboardInterrupt, EOFError):
        print("\n👋 Goodbye!")

    finally:
        await manager.close()
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
