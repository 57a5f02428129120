"""Entrypoint: python -m chat_sync list | open <conversation_id>"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date

from chat_sync.application.context import SessionContext
from chat_sync.application.dto.send import SendBlocked, SendFailed
from chat_sync.application.state import ConversationState
from chat_sync.config import Settings, settings
from chat_sync.domain.entities.message import Sender
from chat_sync.infrastructure.bus.redis_pubsub import RedisBroadcastChannel
from chat_sync.infrastructure.http.store_client import HttpMessageStore
from chat_sync.infrastructure.terminal.renderer import TerminalRenderer, render_summary
from chat_sync.infrastructure.terminal.viewport import TerminalViewport
from chat_sync.services.conversation_session import ConversationSession

logger = logging.getLogger(__name__)

HELP = "Digite uma mensagem e Enter para enviar. /older carrega o histórico, /quit sai."


async def list_conversations(cfg: Settings) -> int:
    async with HttpMessageStore(settings=cfg) as store:
        summaries = await store.list_conversations()
    for summary in summaries:
        print(render_summary(summary))
    if not summaries:
        print("Nenhuma conversa ainda.")
    return 0


async def _read_line() -> str:
    return await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)


async def open_conversation(cfg: Settings, conversation_id: str, me: Sender) -> int:
    channel = RedisBroadcastChannel.from_settings(cfg)
    async with HttpMessageStore(settings=cfg) as store:
        ctx = SessionContext(me=me, store=store, channel=channel, settings=cfg)
        state = ConversationState(conversation_id=conversation_id)
        viewport = TerminalViewport(state)
        session = ConversationSession(ctx, conversation_id, viewport, state=state)
        session.state.add_listener(TerminalRenderer(session.state, sys.stdout, today=date.today()))
        try:
            if not await session.open():
                return 1
            print(HELP)
            while True:
                line = await _read_line()
                if not line or line.strip() == "/quit":
                    break
                if line.strip() == "/older":
                    viewport.scroll_to(0)
                    await session.on_scroll()
                    await session.jump_to_bottom()
                    continue
                outcome = await session.send(line)
                if isinstance(outcome, (SendBlocked, SendFailed)):
                    logger.info("Send did not go through: %s", outcome)
        finally:
            await session.close()
            await channel.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="chat_sync", description="Terminal chat client")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List conversations")
    open_cmd = sub.add_parser("open", help="Open a conversation")
    open_cmd.add_argument("conversation_id")
    open_cmd.add_argument("--me-id", default=settings.USER_ID)
    open_cmd.add_argument("--me-name", default=settings.USER_NAME)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "list":
        return asyncio.run(list_conversations(settings))
    if not args.me_id:
        parser.error("--me-id (or USER_ID) is required")
    me = Sender(id=args.me_id, name=args.me_name or args.me_id)
    return asyncio.run(open_conversation(settings, args.conversation_id, me))


if __name__ == "__main__":
    sys.exit(main())
