import base64
import binascii
import logging
import re
import sys
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, Mapping, Optional
from urllib.parse import SplitResult, unquote_to_bytes, urlencode

from werkzeug.datastructures import Headers
from werkzeug.wsgi import LimitedStream

from .config import AdapterConfig
from .envelope import InboundEvent, OutboundEnvelope
from .errors import DecodeError, ParseError

logger = logging.getLogger(__name__)

# "%" not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# ASCII control characters and whitespace never survive upstream escaping
_BAD_CHAR = re.compile(r"[\x00-\x20\x7f]")

_DEFAULT_PORTS = {"http": "80", "https": "443"}


# --- URL -----------------------------------------------------------------------
def parse_target(target: str) -> SplitResult:
    """Parse an origin-form request target (``/path?query``) strictly.

    Escapes are checked but left in place. A leading ``//`` stays part of the
    path, the target never carries an authority.
    """
    bad = _BAD_CHAR.search(target)
    if bad:
        raise ParseError(target, f"invalid character {bad.group()!r} at offset {bad.start()}")
    rest, _, fragment = target.partition("#")
    path, _, query = rest.partition("?")
    # the query is handed on raw, only the path must hold valid escapes
    bad = _BAD_ESCAPE.search(path)
    if bad:
        raise ParseError(target, f"invalid escape at offset {bad.start()}")
    return SplitResult("", "", path, query, fragment)


def _unescape(value: str) -> bytes:
    if _BAD_ESCAPE.search(value):
        raise DecodeError(f"query component {value!r}")
    # bytes, so escapes of non-UTF-8 octets survive re-encoding
    return unquote_to_bytes(value.replace("+", " "))


def build_url(path: str, query: Mapping[str, str], trust_escaping: bool = True) -> SplitResult:
    """Rebuild the request target from an escaped path and escaped query values.

    With ``trust_escaping`` the pairs are joined as they came, otherwise each
    one is unescaped and encoded again. Pair order is whatever the mapping
    yields.
    """
    if not query:
        return parse_target(path)
    if trust_escaping:
        raw_qs = "&".join(f"{k}={v}" for k, v in query.items())
    else:
        raw_qs = urlencode([(_unescape(k), _unescape(v)) for k, v in query.items()])
    return parse_target(f"{path}?{raw_qs}")


# --- Request -------------------------------------------------------------------
def _split_host(host: str, forwarded_port: Optional[str], scheme: str):
    name, port = host, ""
    # "[::1]" has colons but no port
    if ":" in host and not host.endswith("]"):
        name, _, port = host.rpartition(":")
    if not port.isdigit():
        port = forwarded_port or _DEFAULT_PORTS.get(scheme, "80")
    return name or "localhost", port


@dataclass
class Request:
    method: str
    url: SplitResult
    headers: Headers
    body: LimitedStream
    content_length: int
    host: str = ""
    protocol: str = field(default="HTTP/1.1", init=False)

    @property
    def target(self) -> str:
        return self.url.path + ("?" + self.url.query if self.url.query else "")

    def environ(self, context=None, event=None, url_scheme: str = "https") -> Dict[str, Any]:
        """PEP 3333 environ for this request.

        The Lambda context and the raw event ride along under ``alb.context``
        and ``alb.event``; the app reads the invocation deadline from there.
        """
        scheme = (self.headers.get("X-Forwarded-Proto") or url_scheme).lower()
        server_name, server_port = _split_host(self.host, self.headers.get("X-Forwarded-Port"), scheme)
        environ = {
            "REQUEST_METHOD": self.method,
            "SCRIPT_NAME": "",
            # WSGI carries the unescaped path as latin-1 decoded bytes
            "PATH_INFO": unquote_to_bytes(self.url.path).decode("latin-1"),
            "QUERY_STRING": self.url.query,
            "REQUEST_URI": self.target,
            "RAW_URI": self.target,
            "SERVER_NAME": server_name,
            "SERVER_PORT": server_port,
            "SERVER_PROTOCOL": self.protocol,
            "CONTENT_TYPE": self.headers.get("Content-Type", ""),
            "CONTENT_LENGTH": str(self.content_length),
            "wsgi.version": (1, 0),
            "wsgi.url_scheme": scheme,
            "wsgi.input": self.body,
            "wsgi.input_terminated": True,
            "wsgi.errors": sys.stderr,
            "wsgi.multithread": False,
            "wsgi.multiprocess": False,
            "wsgi.run_once": False,
            "alb.context": context,
            "alb.event": event,
        }
        if "X-Forwarded-For" in self.headers:
            environ["REMOTE_ADDR"] = self.headers["X-Forwarded-For"].split(",")[0].strip()
        for key, value in self.headers.items():
            hk = "HTTP_" + key.upper().replace("-", "_")
            if hk in ("HTTP_CONTENT_TYPE", "HTTP_CONTENT_LENGTH"):
                continue
            environ[hk] = value
        return environ


def decode_event(event: InboundEvent, trust_escaping: bool = True) -> Request:
    """Turn a load balancer event into a Request.

    Raises DecodeError for a malformed body and ParseError for a malformed
    target. Nothing is built in either case.
    """
    url = build_url(event.path, event.query, trust_escaping)
    headers = Headers()
    for key, value in event.headers.items():
        headers.set(key, value)
    if event.is_base64_encoded:
        try:
            # line breaks are tolerated inside the encoded body
            body = base64.b64decode(event.body.replace("\r", "").replace("\n", ""), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError("base64 body", e) from e
    else:
        try:
            body = event.body.encode("utf-8")
        except UnicodeEncodeError as e:
            raise DecodeError("body", e) from e
    logger.debug("decoded %s %s: %d body bytes", event.method, url.path, len(body))
    return Request(
        method=event.method,
        url=url,
        headers=headers,
        body=LimitedStream(BytesIO(body), len(body)),
        content_length=len(body),
        host=headers.get("Host", ""),
    )


# --- Response ------------------------------------------------------------------
class ResponseRecorder:
    """Collects what a WSGI app sends back: status line, headers and body."""

    def __init__(self):
        self.status = "200 OK"
        self.headers = Headers()
        self.body = bytearray()
        self._started = False

    @property
    def status_code(self) -> int:
        return int(self.status.split(" ", 1)[0])

    def start_response(self, status, response_headers, exc_info=None):
        if exc_info is not None:
            # once body bytes exist the headers count as sent
            if self.body:
                raise exc_info[1].with_traceback(exc_info[2])
        elif self._started:
            raise AssertionError("start_response called a second time without exc_info")
        self._started = True
        self.status = status
        self.headers = Headers(response_headers)
        return self.write

    def write(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.body.extend(data)


def run_app(app, environ, recorder: ResponseRecorder) -> None:
    result = app(environ, recorder.start_response)
    try:
        for chunk in result:
            if chunk:
                recorder.write(chunk)
    finally:
        if hasattr(result, "close"):
            result.close()


def encode_response(recorder: ResponseRecorder) -> OutboundEnvelope:
    """Build the load balancer response from a finished recorder.

    Repeated headers are joined with ",", which is wrong for Set-Cookie; the
    envelope has no other place for them. Bodies that are not valid UTF-8 go
    out base64-encoded.
    """
    joined: Dict[str, list] = {}
    names: Dict[str, str] = {}
    for key, value in recorder.headers.items():
        name = names.setdefault(key.lower(), key)
        joined.setdefault(name, []).append(value)
    out = OutboundEnvelope(
        status_code=recorder.status_code,
        status_description=recorder.status,
        headers={k: ",".join(vv) for k, vv in joined.items()},
    )
    body = bytes(recorder.body)
    try:
        out.body = body.decode("utf-8")
    except UnicodeDecodeError:
        out.body = base64.b64encode(body).decode("ascii")
        out.is_base64_encoded = True
    return out


# --- Lambda entry point -----------------------------------------------------------
class LambdaHandler:
    def __init__(self, app, config: Optional[AdapterConfig] = None):
        if app is None:
            raise ValueError("LambdaHandler needs a WSGI application, got None")
        self.app = app
        self.config = config or AdapterConfig.from_env()
        if self.config.log_level:
            logging.getLogger(__package__).setLevel(self.config.log_level)

    def translate(self, event, context=None) -> OutboundEnvelope:
        inbound = event if isinstance(event, InboundEvent) else InboundEvent.from_dict(event)
        request = decode_event(inbound, self.config.trust_upstream_escaping)
        environ = request.environ(context=context, event=event, url_scheme=self.config.url_scheme)
        recorder = ResponseRecorder()
        try:
            run_app(self.app, environ, recorder)
        except Exception:
            logger.exception("%s %s: application raised", request.method, request.target)
            raise
        out = encode_response(recorder)
        logger.debug(
            "%s %s -> %s (%d body bytes, base64=%s)",
            request.method, request.target, out.status_description, len(recorder.body), out.is_base64_encoded,
        )
        return out

    def run(self, event, context=None) -> Dict[str, Any]:
        return self.translate(event, context).to_dict()

    __call__ = run


def handler(app, config: Optional[AdapterConfig] = None):
    """Wrap a WSGI app as a Lambda function for an ALB target group.

    Request and response bodies are held in memory in full.
    """
    return LambdaHandler(app, config).run
