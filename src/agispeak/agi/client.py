"""AGI client speaking the line protocol with the telephony host.

Commands are written one per line to the host's control channel (our
stdout) and exactly one reply line is read back from stdin.
"""

import logging
import re
import sys
from typing import TextIO

from ..errors import AGICommandError, AGIHangup, AGIProtocolError
from .models import AGIReply, pressed_key

logger = logging.getLogger(__name__)

REPLY_PATTERN = re.compile(r"^200 result=(-?\d+)(?: (.*))?$")

# CHANNEL STATUS result for a line that is ringing and not yet answered
STATUS_RINGING = 4


class AGIClient:
    """Synchronous AGI client bound to a pair of text streams.

    Example:
        client = AGIClient()
        client.read_environment()
        if client.channel_status() == STATUS_RINGING:
            client.answer()
        key = client.playback("/tmp/agispeak_abc", "0123456789*#")
    """

    def __init__(
        self, stdin: TextIO | None = None, stdout: TextIO | None = None
    ) -> None:
        """Initialize the client.

        Args:
            stdin: Stream carrying host replies (defaults to sys.stdin)
            stdout: Stream carrying commands to the host (defaults to sys.stdout)
        """
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.env: dict[str, str] = {}

    def read_environment(self) -> dict[str, str]:
        """Consume the "agi_<name>: <value>" header block sent at startup.

        Returns:
            Header values keyed by name without the "agi_" prefix
        """
        while True:
            line = self.stdin.readline()
            if not line:
                break
            line = line.rstrip("\r\n")
            if not line:
                break
            key, sep, value = line.partition(":")
            if not sep or not key.startswith("agi_"):
                logger.warning(f"Ignoring malformed AGI header line: {line!r}")
                continue
            self.env[key[len("agi_") :]] = value.strip()

        logger.debug(f"Read {len(self.env)} AGI environment values")
        return self.env

    def send(self, command: str | None) -> AGIReply:
        """Send one command and parse its reply.

        Args:
            command: Command line without trailing newline

        Returns:
            Parsed reply

        Raises:
            ValueError: If command is empty (nothing is sent)
            AGIHangup: If the host reports a hangup instead of a reply
            AGIProtocolError: If the reply does not match the AGI grammar
        """
        if not command:
            raise ValueError("No AGI command provided")

        logger.debug(f">> {command}")
        self.stdout.write(f"{command}\n")
        self.stdout.flush()

        line = self.stdin.readline()
        if not line:
            logger.warning(f"No reply to {command!r}: control channel closed")
            raise AGIProtocolError(f"No reply to {command!r}", None)

        line = line.rstrip("\r\n")
        logger.debug(f"<< {line}")

        if line.startswith("HANGUP"):
            raise AGIHangup(f"Caller hung up during {command!r}")

        match = REPLY_PATTERN.match(line)
        if match is None:
            logger.warning(f"Unexpected reply to {command!r}: {line!r}")
            raise AGIProtocolError(f"Unexpected reply to {command!r}: {line}", line)

        return AGIReply(result=int(match.group(1)), data=match.group(2))

    def channel_status(self) -> int:
        """Return the numeric CHANNEL STATUS of the current channel."""
        return self.send("CHANNEL STATUS").result

    def answer(self) -> None:
        """Answer the channel.

        Raises:
            AGICommandError: If the host reports a non-zero result
        """
        reply = self.send("ANSWER")
        if reply.result != 0:
            raise AGICommandError("ANSWER", reply.result)

    def get_variable(self, name: str) -> str | None:
        """Fetch a channel function value such as audionativeformat.

        Returns:
            The value, or None if the host reports it unset
        """
        reply = self.send(f"GET FULL VARIABLE ${{CHANNEL({name})}}")
        if reply.result != 1:
            return None
        return reply.value

    def playback(self, path: str, keys: str = "") -> int:
        """Play a file, optionally letting the caller interrupt with a key.

        When the reply carries the character code of a pressed key, dialplan
        execution is redirected to that key's extension at priority 1.

        Args:
            path: Audio file path without extension
            keys: Keys that may interrupt playback

        Returns:
            Character code of the pressed key, or the playback result

        Raises:
            AGICommandError: If the host reports playback failure (-1)
        """
        command = f'EXEC Playback {path} "{keys}"'
        reply = self.send(command)

        if reply.result == -1:
            raise AGICommandError(command, reply.result)

        digit = pressed_key(reply.result)
        if digit is not None:
            logger.info(f"Caller pressed {digit!r}, jumping to extension {digit}")
            self.send(f"SET EXTENSION {digit}")
            self.send("SET PRIORITY 1")

        return reply.result

    def verbose(self, message: str, level: int = 1) -> None:
        """Write a message to the host console."""
        escaped = message.replace("\\", "\\\\").replace('"', '\\"')
        self.send(f'VERBOSE "{escaped}" {level}')
