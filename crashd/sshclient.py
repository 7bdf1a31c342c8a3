"""A small SSH client for running commands on remote machines."""

from __future__ import annotations

import logging
import os
import socket
from typing import Optional

import paramiko

from .directives import Machine

logger = logging.getLogger(__name__)

_KEY_TYPES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


class SSHClient:
    """Connects to an SSH server with a private key and runs commands there."""

    def __init__(self, user: str, private_key: str) -> None:
        self.user = user
        self.private_key = private_key
        self._insecure = False
        self._client: Optional[paramiko.SSHClient] = None

    @classmethod
    def _new_insecure(cls, user: str) -> SSHClient:
        client = cls(user, "")
        client._insecure = True
        return client

    def __enter__(self) -> SSHClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.hangup()

    def _load_private_key(self) -> paramiko.PKey:
        os.stat(self.private_key)
        logger.debug("Configuring SSH connection with %s", self.private_key)
        last_err: Exception | None = None
        for key_type in _KEY_TYPES:
            try:
                key = key_type.from_private_key_file(self.private_key)
            except (paramiko.SSHException, ValueError) as err:
                last_err = err
                continue
            logger.debug("Found SSH private key %s", self.private_key)
            return key
        raise paramiko.SSHException(
            f"unable to parse private key {self.private_key}: {last_err}"
        )

    def dial(self, addr: str) -> None:
        """Connect to the SSH server at ``host:port``."""
        logger.debug("SSH dialing server %s", addr)
        if not self.user:
            raise ValueError("Missing SSH user")

        pkey = None
        if not self._insecure:
            logger.debug("Connecting using private key file %s", self.private_key)
            pkey = self._load_private_key()

        machine = Machine(addr)
        host, port = machine.host, machine.port
        port_num = int(port) if port.isdigit() else socket.getservbyname(port, "tcp")

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                host,
                port=port_num,
                username=self.user,
                pkey=pkey,
                allow_agent=False,
                look_for_keys=False,
            )
        except Exception:
            client.close()
            raise
        self._client = client

    def run(self, cmd: str, *args: str) -> bytes:
        """Run a command remotely and return its standard output.

        CMD_EXITCODE and CMD_SUCCESS are set from the outcome.
        """
        if self._client is None:
            raise paramiko.SSHException("SSH: not connected")
        cmd_str = f"{cmd} {' '.join(args)}".strip()
        logger.debug("Running remote command: %s", cmd_str)

        _, stdout, _ = self._client.exec_command(cmd_str)
        output = stdout.read()
        status = stdout.channel.recv_exit_status()
        if status != 0:
            os.environ["CMD_EXITCODE"] = "1"
            os.environ["CMD_SUCCESS"] = "false"
            raise paramiko.SSHException(
                f"SSH: error waiting for response: Process exited with status {status}"
            )

        os.environ["CMD_EXITCODE"] = "0"
        os.environ["CMD_SUCCESS"] = "true"
        logger.debug("Remote command succeeded: %s", cmd_str)
        return output

    def hangup(self) -> None:
        """Close the connection, if one is open."""
        if self._client is not None:
            client, self._client = self._client, None
            client.close()