"""A connected chat client and the commands it can issue."""

from __future__ import annotations

import queue
import socket
import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from peercache.chat_server import Server

NAME_TAKEN_MESSAGE = "当前名称已被占用，请更换!"
RENAME_DONE_MESSAGE = "更换名字成功，您当前用户名为:"
RENAME_PREFIX = "rename|"


def _peer_address(conn: socket.socket) -> str:
    peer = conn.getpeername()
    if isinstance(peer, tuple):
        host, port = peer[0], peer[1]
        if ":" in host:
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(peer)


def extract_command(msg: str) -> tuple[str, list[str]]:
    """Split a raw message into a command name and its arguments.

    ``rename|<name>`` yields ``("rename", [name])``; anything else is returned
    unchanged with no arguments.
    """
    if msg.startswith(RENAME_PREFIX):
        return "rename", [msg.split("|", 1)[1]]
    return msg, []


class User:
    """A client connection registered with a chat server.

    Messages put into ``inbox`` are written to the connection by a
    background thread; putting ``None`` stops that thread.
    """

    def __init__(self, conn: socket.socket, server: "Server") -> None:
        address = _peer_address(conn)
        self.name = address
        self.addr = address
        self.inbox: "queue.Queue[Optional[str]]" = queue.Queue()
        self.conn = conn
        self.server = server
        self._write_lock = threading.Lock()
        self._listener = threading.Thread(target=self.listen, daemon=True)
        self._listener.start()

    def listen(self) -> None:
        """Write every message from the inbox to the connection until stopped."""
        while True:
            msg = self.inbox.get()
            if msg is None:
                return
            self.send_msg(msg)

    def online(self) -> None:
        """Announce that this user has come online."""
        self.server.broadcast(self, "online")

    def offline(self) -> None:
        """Announce that this user has gone offline."""
        self.server.broadcast(self, "offline")

    def send_msg(self, msg: str) -> None:
        """Send one line to this user; write failures are ignored."""
        data = (msg + "\n").encode("utf-8")
        with self._write_lock:
            try:
                self.conn.sendall(data)
            except OSError:
                pass

    def handle_message(self, msg: str) -> None:
        """Run a command (``who``, ``rename|<name>``) or broadcast the message."""
        command, args = extract_command(msg)
        if command == "who":
            with self.server.lock:
                names = [user.name for user in self.server.online_users.values()]
            for name in names:
                self.send_msg(name + "  online...")
        elif command == "rename":
            name = args[0]
            with self.server.lock:
                taken = any(
                    user.name == name for user in self.server.online_users.values()
                )
                if not taken:
                    registered = self.server.online_users.get(self.addr)
                    if registered is not None:
                        registered.name = name
                    self.name = name
            if taken:
                self.send_msg(NAME_TAKEN_MESSAGE)
                return
            self.send_msg(RENAME_DONE_MESSAGE + name)
        else:
            self.server.broadcast(self, msg)