"""A TCP chat server that relays messages between connected users."""

from __future__ import annotations

import argparse
import queue
import socket
import threading
from typing import Any, Optional

from peercache.chat_user import User

TIMEOUT_MESSAGE = "超时踢出"
DEFAULT_IP = "127.0.0.1"
DEFAULT_PORT = 8888


class Server:
    """Accepts connections, tracks online users and broadcasts their messages.

    A user silent for ``idle_timeout`` seconds is disconnected.
    """

    idle_timeout: float = 10.0

    def __init__(self, ip: str, port: int) -> None:
        self.ip = ip
        self.port = port
        self.online_users: dict[str, User] = {}
        self.lock = threading.RLock()
        self.messages: "queue.Queue[Optional[str]]" = queue.Queue()

    def broadcast(self, user: Any, msg: str) -> None:
        """Queue ``msg`` from ``user`` for delivery to everyone online."""
        self.messages.put(f"[{user.name}]:{msg}")

    def listen_message(self) -> None:
        """Deliver queued messages to every online user; stops on ``None``."""
        while True:
            msg = self.messages.get()
            if msg is None:
                return
            with self.lock:
                for user in self.online_users.values():
                    user.inbox.put(msg)

    def handle(self, conn: socket.socket) -> None:
        """Serve one connection until it closes or stays idle too long."""
        remote = conn.getpeername()
        user = User(conn, self)
        with self.lock:
            self.online_users[user.addr] = user
        print("建立链接完成，请求来自", user.addr if remote else remote)

        live: "queue.Queue[bool]" = queue.Queue()

        def read_loop() -> None:
            try:
                while True:
                    try:
                        data = conn.recv(4096)
                    except OSError as err:
                        print("Conn Read err", err)
                        return
                    if not data:
                        return
                    live.put(True)
                    user.handle_message(data[:-1].decode("utf-8", errors="replace"))
            finally:
                live.put(False)

        try:
            user.online()
            threading.Thread(target=read_loop, daemon=True).start()
            while True:
                try:
                    alive = live.get(timeout=self.idle_timeout)
                except queue.Empty:
                    user.send_msg(TIMEOUT_MESSAGE)
                    return
                if not alive:
                    return
        finally:
            user.offline()
            with self.lock:
                self.online_users.pop(user.addr, None)
            user.inbox.put(None)
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            conn.close()

    def start(self) -> None:
        """Listen on ``ip:port`` and serve each connection in its own thread."""
        try:
            listener = socket.create_server((self.ip, self.port))
        except OSError as err:
            print("new.Listen error", err)
            return

        with listener:
            threading.Thread(target=self.listen_message, daemon=True).start()
            while True:
                try:
                    conn, _ = listener.accept()
                except OSError as err:
                    print("listener accept error", err)
                    continue
                threading.Thread(target=self.handle, args=(conn,), daemon=True).start()


def main(argv: Optional[list[str]] = None) -> int:
    """Run the chat server."""
    parser = argparse.ArgumentParser(description="Run the chat server.")
    parser.add_argument("--ip", default=DEFAULT_IP, help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    try:
        Server(args.ip, args.port).start()
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())