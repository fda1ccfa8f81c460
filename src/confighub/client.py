from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .errors import ConfigError, ContextMismatchError, DecodeError, RemoteError
from .files import Files
from .models import PullPayload, Snapshot
from .properties import Properties
from .push_queue import PushQueue
from .transport import DEFAULT_TIMEOUT, HttpTransport, TransportResponse


logger = logging.getLogger(__name__)

CLIENT_API_VERSION = "v1.3.0"
DEFAULT_SERVER_ADDRESS = "api.confighub.com"

# Environment variable names for `ConfigHub.from_env()`
ENV_TOKEN = "CONFIGHUB_TOKEN"
ENV_ACCOUNT = "CONFIGHUB_ACCOUNT"
ENV_REPO = "CONFIGHUB_REPO"
ENV_CONTEXT = "CONFIGHUB_CONTEXT"
ENV_SERVER = "CONFIGHUB_SERVER"
ENV_APPLICATION_NAME = "CONFIGHUB_APPLICATION_NAME"
ENV_TAG = "CONFIGHUB_TAG"
ENV_DATE = "CONFIGHUB_DATE"
ENV_INSECURE = "CONFIGHUB_INSECURE"

_PULL_STATUS_MESSAGES = {
    401: "Token no longer authorized",
    404: "Requested repository not found",
    406: "Invalid token",
    500: "ConfigHub internal server error",
}


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if v is None or not v.strip():
        raise ConfigError(f"{what} cannot be blank")
    return v


def _flag(b: bool) -> str:
    return "true" if b else "false"


class ConfigHub:
    """
    Session with one ConfigHub repository: pull, snapshot to/from file, push.

    Usage
        hub = ConfigHub(token=token, context="Production;MyApp", application_name="MyApp")
        hub.pull()
        port = hub.properties.get_integer("db.port")
        hub.files.write_to_local("server.xml", "/etc/myapp/server.xml")
        hub.to_file("/var/cache/myapp/config.json")

        # Offline: read a previously saved snapshot
        hub = ConfigHub(account="Acme", repository_name="Main", context="Production;MyApp")
        hub.from_file("/var/cache/myapp/config.json")

    Notes
    - Authenticate with either a repository `token`, or `account` plus
      `repository_name`; exactly one of the two must be given.
    - A pull (or `from_file`) replaces both tables only when the whole payload
      decodes; on any error the previous tables stay in place.
    - `pull()`, `from_file()` and `push_queue.flush()` are serialized per session.
    - Values in a security group arrive encrypted unless the group password is
      supplied with `decrypt_security_group()`; the client never decrypts.
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        account: Optional[str] = None,
        repository_name: Optional[str] = None,
        context: Optional[str] = None,
        server_address: str = DEFAULT_SERVER_ADDRESS,
        secure_connection: bool = True,
        application_name: Optional[str] = None,
        tag: Optional[str] = None,
        date: Optional[str] = None,
        include_comments: bool = False,
        include_context: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
        transport: Optional[HttpTransport] = None,
    ) -> None:
        if token is not None:
            if account is not None or repository_name is not None:
                raise ConfigError("Use either token, or account and repository name, not both")
            self._token: Optional[str] = _require(token, "Token")
            self._account: Optional[str] = None
            self._repository_name: Optional[str] = None
        else:
            if account is None and repository_name is None:
                raise ConfigError(
                    "Either token, or account and repository name have to be specified."
                )
            self._token = None
            self._account = _require(account, "Account")
            self._repository_name = _require(repository_name, "Repository name")

        self._context = _require(context, "Context") if context is not None else None
        self._server_address = server_address
        self._secure_connection = secure_connection
        self._application_name = application_name
        self._tag = tag
        self._date = date
        self._security_group_auth: Dict[str, str] = {}
        self._include_comments = include_comments
        self._include_context = include_context

        self._owns_transport = transport is None
        self._transport = transport or HttpTransport(timeout=timeout, client=client)
        self._lock = threading.Lock()

        # Raw JSON of the last successful decode, written back by to_file()
        self._properties_json: Dict[str, Any] = {}
        self._files_json: Dict[str, Any] = {}

        self.properties = Properties()
        self.files = Files()
        self.push_queue = PushQueue(self)

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls, *, client: Optional[httpx.Client] = None) -> "ConfigHub":
        """Build a session from CONFIGHUB_* environment variables."""
        token = _getenv(ENV_TOKEN)
        account = _getenv(ENV_ACCOUNT)
        repo = _getenv(ENV_REPO)
        if not token and not (account and repo):
            missing = [name for name, val in [(ENV_ACCOUNT, account), (ENV_REPO, repo)] if not val]
            raise ConfigError(
                f"Missing required environment variables for ConfigHub: "
                f"{ENV_TOKEN}, or {', '.join(missing)}"
            )
        auth: Dict[str, Any] = (
            {"token": token} if token else {"account": account, "repository_name": repo}
        )
        insecure = (_getenv(ENV_INSECURE) or "false").strip().lower() in ("1", "true", "yes")
        return cls(
            **auth,
            context=_getenv(ENV_CONTEXT),
            server_address=_getenv(ENV_SERVER, DEFAULT_SERVER_ADDRESS) or DEFAULT_SERVER_ADDRESS,
            secure_connection=not insecure,
            application_name=_getenv(ENV_APPLICATION_NAME),
            tag=_getenv(ENV_TAG),
            date=_getenv(ENV_DATE),
            client=client,
        )

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()

    def __enter__(self) -> "ConfigHub":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------- Session parameters --------
    @property
    def context(self) -> Optional[str]:
        return self._context

    @property
    def account(self) -> Optional[str]:
        return self._account

    @property
    def repository_name(self) -> Optional[str]:
        return self._repository_name

    @property
    def application_name(self) -> Optional[str]:
        return self._application_name

    def set_context(self, context: str) -> "ConfigHub":
        """Context items are semicolon delimited, e.g. "Production;MyApp"."""
        self._context = _require(context, "Context")
        return self

    def set_server_address(self, server_address: str) -> "ConfigHub":
        self._server_address = server_address
        return self

    def set_secure_connection(self, secure_connection: bool) -> "ConfigHub":
        self._secure_connection = secure_connection
        return self

    def set_application_name(self, application_name: Optional[str]) -> "ConfigHub":
        self._application_name = application_name
        return self

    def set_tag(self, tag: Optional[str]) -> "ConfigHub":
        self._tag = tag
        return self

    def set_date(self, date: Optional[str]) -> "ConfigHub":
        """Pull configuration as of a UTC ISO 8601 date, "YYYY-MM-DDTHH:MM:SSZ"."""
        self._date = date
        return self

    def decrypt_security_group(self, group_name: str, password: str) -> "ConfigHub":
        """Ask the service to return values of `group_name` decrypted."""
        self._security_group_auth[group_name] = password
        return self

    def include_comments(self, include: bool) -> "ConfigHub":
        self._include_comments = include
        return self

    def include_context(self, include: bool) -> "ConfigHub":
        self._include_context = include
        return self

    # -------- Pull --------
    def pull(self) -> Properties:
        """Fetch and decode configuration for the session context.

        Raises:
        - ConfigError if no context is set.
        - TransportError if the service cannot be reached.
        - RemoteError for non-200 responses or an error message in the payload.
        - ContextMismatchError / DecodeError for an unusable payload.
        """
        if self._context is None:
            raise ConfigError("Context cannot be blank")

        headers = {
            "Context": self._context,
            "Repository-Date": self._date,
            "Tag": self._tag,
            "Application-Name": self._application_name,
            "Security-Profile-Auth": (
                json.dumps(self._security_group_auth) if self._security_group_auth else None
            ),
            "Include-Comments": _flag(self._include_comments),
            "Include-Value-Context": _flag(self._include_context),
            "Client-Token": self._token,
        }

        with self._lock:
            resp = self._transport.request("GET", self._url("/rest/pull"), headers=headers)
            if resp.status_code != 200:
                reason = _PULL_STATUS_MESSAGES.get(resp.status_code, "Unexpected response")
                logger.error("Pull failed: HTTP %s (%s)", resp.status_code, reason)
                raise RemoteError(f"Failed to get configuration: HTTP {resp.status_code} ({reason})")
            self._read_json(resp.text)
        return self.properties

    # -------- Snapshot file --------
    def from_file(self, path: os.PathLike[str] | str) -> Properties:
        """Load a snapshot written by `to_file()` instead of pulling.

        Raises OSError if the file cannot be read, plus the decode errors of `pull()`.
        """
        with Path(path).open("r", encoding="utf-8") as f:
            text = f.read()
        with self._lock:
            self._read_json(text)
        return self.properties

    def to_file(self, path: os.PathLike[str] | str) -> Path:
        """Write the last decoded configuration as a pretty-printed JSON snapshot."""
        # Read all fields under the lock so a concurrent pull cannot mix two payloads
        with self._lock:
            snapshot = Snapshot(
                context=self._context,
                account=self._account,
                repo=self._repository_name,
                properties=self._properties_json,
                files=self._files_json,
            ).model_dump()
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2)
        logger.info("Wrote configuration to file: %s", out.resolve())
        return out

    # -------- Push --------
    def send_push(self, body: str) -> TransportResponse:
        """POST an encoded push payload; used by `push_queue.flush()`."""
        headers = {
            "Application-Name": self._application_name,
            "Content-Type": "application/json",
            "Client-Version": CLIENT_API_VERSION,
            "Client-Token": self._token,
        }
        return self._transport.request("POST", self._url("/rest/push"), headers=headers, content=body)

    # -------- Internal --------
    def _url(self, rest: str) -> str:
        if not self._server_address:
            raise ConfigError("ConfigHub server address cannot be blank")
        scheme = "https" if self._secure_connection else "http"
        url = f"{scheme}://{self._server_address}{rest}"
        if self._token is None:
            if not self._account or not self._repository_name:
                raise ConfigError(
                    "Either token, or account and repository name have to be specified."
                )
            url += f"/{quote(self._account, safe='')}/{quote(self._repository_name, safe='')}"
        logger.info("Connecting to ConfigHub via url: %s", url)
        return url

    def _read_json(self, text: str) -> None:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeError("Received invalid configuration: body is not JSON") from exc
        if not isinstance(raw, dict):
            raise DecodeError("Received invalid configuration: expected a JSON object")
        try:
            payload = PullPayload.model_validate(raw)
        except ValidationError as ve:
            raise DecodeError(f"Received invalid configuration: {ve}") from ve

        if self._context is not None and payload.context is not None and payload.context != self._context:
            message = (
                f"Requested context '{self._context}' is not the same as context "
                f"in the configuration: '{payload.context}'."
            )
            logger.error(message)
            raise ContextMismatchError(message)

        if payload.error is not None:
            logger.error("ConfigHub returned an error: %s", payload.error)
            raise RemoteError(payload.error)

        # Decode both tables before touching either
        properties = Properties.parse(payload.properties)
        files = Files.parse(payload.files)

        self.properties.replace(properties)
        self.files.replace(files)
        self._properties_json = dict(payload.properties or {})
        self._files_json = dict(payload.files or {})
        if payload.account:
            self._account = payload.account
        if payload.repo:
            self._repository_name = payload.repo
        if self._context is None and payload.context:
            self._context = payload.context


__all__ = ["ConfigHub", "CLIENT_API_VERSION", "DEFAULT_SERVER_ADDRESS"]
