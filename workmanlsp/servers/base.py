"""Base language server manager: process lifecycle and stdio JSON-RPC."""

import abc
import json
import logging
import os
import queue
import subprocess
import threading
import time
from typing import IO, Any, Dict, List, Optional, TypeAlias

from pygls.uris import from_fs_path

from workmanlsp.errors import LaunchError
from workmanlsp.resolver import ResolvedCommand

# LSP message types
LspMessage: TypeAlias = Dict[str, Any]

REQUEST_TIMEOUT = 10
STOP_TIMEOUT = 5


def encode_message(message: LspMessage) -> bytes:
    """Frame a JSON-RPC message with its Content-Length header."""
    content = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(content)}\r\n\r\n".encode("ascii")
    return header + content


def read_message(stream: IO[bytes]) -> Optional[LspMessage]:
    """Read one framed JSON-RPC message.

    Args:
        stream: Binary stream positioned at a message header.

    Returns:
        The decoded message, or None at end of stream.
    """
    content_length = None
    while True:
        line = stream.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            if content_length is None:
                # stray blank line between messages
                continue
            break
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            content_length = int(value.strip())

    content = stream.read(content_length)
    if len(content) < content_length:
        return None
    return json.loads(content.decode("utf-8"))


class BaseLanguageServerManager(abc.ABC):
    """Abstract base class for language server managers.

    Subclasses decide which command to run and what configuration to hand
    the server; this class owns the process and the protocol plumbing.
    """

    def __init__(self, workspace_path: str):
        """Initialize the language server manager.

        Args:
            workspace_path: Path to the workspace directory.
        """
        self.workspace_path = os.path.abspath(workspace_path)
        self.logger = logging.getLogger(f"workmanlsp.servers.{self.name}")
        self.server_process: Optional[subprocess.Popen] = None
        self.server_capabilities: Dict[str, Any] = {}

        # LSP communication
        self.next_request_id = 1
        self.response_queue: "queue.Queue[LspMessage]" = queue.Queue()
        self.write_queue: "queue.Queue[Optional[LspMessage]]" = queue.Queue()
        self.reader_thread: Optional[threading.Thread] = None
        self.writer_thread: Optional[threading.Thread] = None

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Get the name of the managed server, used for logging."""

    @abc.abstractmethod
    def resolve_command(self) -> ResolvedCommand:
        """Resolve the command that starts the server."""

    def initialization_options(self) -> Optional[Any]:
        """Get the options sent with the initialize request."""
        return None

    def workspace_configuration(self) -> Optional[Any]:
        """Get the configuration served to the server."""
        return None

    def start(self) -> None:
        """Start the language server process and initialize it.

        Raises:
            WorkmanLspError: If the command cannot be resolved, the process
                cannot be spawned, or the server rejects initialization.
        """
        if self.is_running():
            self.logger.info(f"{self.name} language server is already running")
            return

        command = self.resolve_command()
        argv = [command.command, *command.args]

        env = dict(os.environ)
        env.update(command.env)

        self.logger.info(f"Starting {self.name} language server with command: {' '.join(argv)}")
        try:
            self.server_process = subprocess.Popen(
                argv,
                cwd=self.workspace_path,
                env=env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            self.logger.error(f"Failed to start {self.name} language server: {e}")
            raise LaunchError(f"Failed to start {command.command}: {e}") from e

        self._start_lsp_communication()
        try:
            self._initialize_lsp_server()
        except LaunchError:
            self._stop_lsp_communication()
            self._terminate_process()
            raise

    def stop(self) -> None:
        """Shut down the language server process."""
        if self.is_running():
            self._send_shutdown_request()
        self._stop_lsp_communication()
        self._terminate_process()

    def is_running(self) -> bool:
        """Check if the language server process is alive."""
        return self.server_process is not None and self.server_process.poll() is None

    def _terminate_process(self) -> None:
        if self.server_process is None:
            return

        if self.server_process.poll() is None:
            self.logger.info(f"Stopping {self.name} language server")
            try:
                self.server_process.wait(timeout=STOP_TIMEOUT)
            except subprocess.TimeoutExpired:
                self.server_process.terminate()
                try:
                    self.server_process.wait(timeout=STOP_TIMEOUT)
                except subprocess.TimeoutExpired:
                    self.logger.warning(f"{self.name} language server did not terminate, forcing kill")
                    self.server_process.kill()
                    self.server_process.wait()

        self.server_process = None
        self.logger.info(f"{self.name} language server stopped")

    def _start_lsp_communication(self) -> None:
        """Start the reader and writer threads."""
        self.reader_thread = threading.Thread(
            target=self._lsp_reader,
            daemon=True,
            name=f"{self.name}-lsp-reader",
        )
        self.reader_thread.start()

        self.writer_thread = threading.Thread(
            target=self._lsp_writer,
            daemon=True,
            name=f"{self.name}-lsp-writer",
        )
        self.writer_thread.start()

    def _stop_lsp_communication(self) -> None:
        # writer drains queued messages up to the sentinel
        self.write_queue.put(None)

        if self.writer_thread and self.writer_thread.is_alive():
            self.writer_thread.join(timeout=2)

        if self.server_process and self.server_process.stdin:
            try:
                self.server_process.stdin.close()
            except OSError as e:
                self.logger.debug(f"Error closing {self.name} language server input: {e}")

        if self.reader_thread and self.reader_thread.is_alive():
            self.reader_thread.join(timeout=2)

    def _lsp_reader(self) -> None:
        """Read messages from the server until its stdout closes."""
        stdout = self.server_process.stdout
        while True:
            try:
                message = read_message(stdout)
            except (OSError, ValueError) as e:
                self.logger.error(f"Error reading from {self.name} language server: {e}")
                break
            if message is None:
                self.logger.debug("Language server closed its output")
                break

            self.logger.debug(f"Received LSP message: {message}")
            self._process_lsp_message(message)

    def _lsp_writer(self) -> None:
        """Write queued messages to the server."""
        stdin = self.server_process.stdin
        while True:
            message = self.write_queue.get()
            if message is None:
                break

            self.logger.debug(f"Sending LSP message: {message}")
            try:
                stdin.write(encode_message(message))
                stdin.flush()
            except OSError as e:
                self.logger.error(f"Error writing to {self.name} language server: {e}")
                break

    def _process_lsp_message(self, message: LspMessage) -> None:
        """Dispatch a message from the server."""
        if "method" in message:
            if "id" in message:
                self._handle_server_request(message)
            else:
                self._handle_notification(message)
            return

        if "id" in message:
            self.response_queue.put(message)

    def _handle_server_request(self, request: LspMessage) -> None:
        """Answer a request initiated by the server."""
        method = request["method"]
        result: Any = None

        if method == "workspace/configuration":
            items = request.get("params", {}).get("items", [])
            config = self.workspace_configuration()
            result = [config for _ in items]

        self.write_queue.put({"jsonrpc": "2.0", "id": request["id"], "result": result})

    def _handle_notification(self, notification: LspMessage) -> None:
        """Forward server log messages to our logger."""
        if notification.get("method") != "window/logMessage":
            return

        params = notification.get("params", {})
        log_levels = {
            1: logging.ERROR,
            2: logging.WARNING,
            3: logging.INFO,
            4: logging.DEBUG,
        }
        level = log_levels.get(params.get("type", 4), logging.INFO)
        self.logger.log(level, f"LSP server: {params.get('message', '')}")

    def _initialize_lsp_server(self) -> None:
        """Run the initialize handshake and push the workspace configuration.

        Raises:
            LaunchError: If the server does not answer initialize with a result.
        """
        params = {
            "processId": os.getpid(),
            "rootPath": self.workspace_path,
            "rootUri": from_fs_path(self.workspace_path),
            "workspaceFolders": self._workspace_folders(),
            "capabilities": {
                "workspace": {
                    "configuration": True,
                    "didChangeConfiguration": {},
                    "workspaceFolders": True,
                },
                "textDocument": {
                    "synchronization": {"didSave": True},
                    "publishDiagnostics": {},
                },
            },
            "initializationOptions": self.initialization_options(),
        }

        response = self._send_request_sync("initialize", params)
        if "result" not in response:
            error = response.get("error", {}).get("message", "no response")
            self.logger.error(f"Failed to initialize {self.name} LSP server: {error}")
            raise LaunchError(f"{self.name} language server failed to initialize: {error}")

        self.server_capabilities = (response["result"] or {}).get("capabilities", {})
        self._send_notification("initialized", {})
        self._send_notification(
            "workspace/didChangeConfiguration",
            {"settings": self.workspace_configuration()},
        )
        self.logger.info(f"Successfully initialized {self.name} LSP server")

    def _workspace_folders(self) -> List[Dict[str, str]]:
        return [{
            "uri": from_fs_path(self.workspace_path),
            "name": os.path.basename(self.workspace_path),
        }]

    def _send_shutdown_request(self) -> None:
        response = self._send_request_sync("shutdown", None)

        if "result" in response:
            self._send_notification("exit", None)
            self.logger.info(f"Successfully shut down {self.name} LSP server")
        else:
            self.logger.error(f"Failed to shut down {self.name} LSP server")

    def _send_request_sync(self, method: str, params: Any) -> LspMessage:
        """Send a request and wait for its response.

        Returns:
            The response message, or an empty dict on timeout.
        """
        request_id = str(self.next_request_id)
        self.next_request_id += 1

        request: LspMessage = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            request["params"] = params
        self.write_queue.put(request)

        deadline = time.monotonic() + REQUEST_TIMEOUT
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                response = self.response_queue.get(timeout=remaining)
            except queue.Empty:
                break
            if str(response.get("id")) == request_id:
                return response
            self.logger.debug(f"Dropping unexpected response: {response}")

        self.logger.error(f"Timeout waiting for response to {method} request")
        return {}

    def _send_notification(self, method: str, params: Any) -> None:
        notification: LspMessage = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            notification["params"] = params
        self.write_queue.put(notification)
