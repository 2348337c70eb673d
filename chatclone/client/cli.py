"""
Terminal chat client.

Registered as the ``chatclone-chat`` console script. Replies are printed
as their fragments arrive.
"""

import asyncio
from typing import Optional

import click

from ..config import settings
from .consumer import ChatClient
from .state import ChatSession


class _ReplyPrinter:
    """Session listener that echoes new assistant text to the terminal."""

    def __init__(self):
        self._message_id: Optional[str] = None
        self._printed = 0

    def __call__(self, session: ChatSession) -> None:
        if not session.messages:
            return
        last = session.messages[-1]
        if last.role != "assistant":
            return
        if last.id != self._message_id:
            self._message_id = last.id
            self._printed = 0
        if len(last.content) > self._printed:
            click.echo(last.content[self._printed:], nl=False)
            self._printed = len(last.content)


async def _run_chat(client: ChatClient, new: bool, messages: tuple) -> None:
    await client.load_chats()
    if new or not client.session.active_chat:
        await client.new_chat()
    else:
        await client.load_messages()
        for message in client.session.messages:
            click.secho(f"{message.role}: ", fg="cyan", nl=False)
            click.echo(message.content)

    client.subscribe(_ReplyPrinter())

    async def turn(text: str) -> None:
        click.secho("assistant: ", fg="green", nl=False)
        await client.send_message(text)
        click.echo()

    if messages:
        for text in messages:
            click.secho(f"you: {text}", fg="cyan")
            await turn(text)
        return

    while True:
        text = await asyncio.to_thread(click.prompt, "you", default="", show_default=False)
        if text.strip() in ("", "/quit", "/exit"):
            break
        await turn(text)


@click.command()
@click.option("--server-url", default=lambda: settings.server_url, show_default="from settings",
              help="Chat server base URL.")
@click.option("--token", default=None, help="Bearer token (defaults to the development mock token).")
@click.option("--new", "new_chat", is_flag=True, help="Start a new conversation.")
@click.option("--typing-delay", type=float, default=None, help="Delay for the offline typing effect.")
@click.argument("messages", nargs=-1)
def main(server_url: str, token: Optional[str], new_chat: bool,
         typing_delay: Optional[float], messages: tuple) -> None:
    """Chat with the server. Pass MESSAGES to send them and exit."""
    client = ChatClient(server_url=server_url, token=token, typing_delay=typing_delay)
    asyncio.run(_run_chat(client, new_chat, messages))


if __name__ == "__main__":
    main()
