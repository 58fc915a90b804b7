"""Identity of the process holding a namespace lease."""

from dataclasses import dataclass, field
import getpass
import json
import logging
import os
import socket
import uuid

from hedera_solo.exceptions import InputException

__all__ = [
    "LeaseHolder",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaseHolder:
    """A user, machine and process that holds a lease."""

    username: str
    hostname: str
    pid: int
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    """Random identifier distinguishing two runs that reuse the same pid."""

    @classmethod
    def default(cls) -> "LeaseHolder":
        """Return the identity of the current process."""
        return cls(
            username=getpass.getuser(),
            hostname=socket.gethostname(),
            pid=os.getpid(),
        )

    def to_json(self) -> str:
        """Serialize as the lease holder identity string."""
        return json.dumps(
            {
                "username": self.username,
                "hostname": self.hostname,
                "processId": self.pid,
                "runId": self.run_id,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, value: str) -> "LeaseHolder":
        """Parse a lease holder identity string."""
        try:
            doc = json.loads(value)
            return cls(
                username=doc["username"],
                hostname=doc["hostname"],
                pid=int(doc["processId"]),
                run_id=doc.get("runId", ""),
            )
        except (ValueError, KeyError, TypeError) as err:
            raise InputException(f"Invalid lease holder identity '{value}'") from err

    def is_same_process(self, other: "LeaseHolder") -> bool:
        """Return true if both identities belong to the same process run."""
        return self == other

    def is_same_machine(self, other: "LeaseHolder") -> bool:
        """Return true if both identities belong to the same user and machine."""
        return self.username == other.username and self.hostname == other.hostname

    def is_process_alive(self) -> bool:
        """Return true if the holder process is still running on this machine."""
        try:
            os.kill(self.pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Process exists but is owned by another user
            return True
        return True

    def __str__(self) -> str:
        return f"{self.username}@{self.hostname} (PID: {self.pid})"
