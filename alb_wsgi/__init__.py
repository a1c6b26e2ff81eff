"""
Run a WSGI application as an AWS Lambda function behind an Application Load
Balancer (ALB).

Usage::

    from alb_wsgi import handler
    from myapp import app

    lambda_handler = handler(app)

Both the request and the response cross the Lambda boundary as JSON, and the
load balancer caps each at 1 MB. Response bodies that are not valid UTF-8 are
sent base64-encoded, which costs about a third more of that budget.

See https://docs.aws.amazon.com/elasticloadbalancing/latest/application/lambda-functions.html
"""

from .config import AdapterConfig
from .envelope import InboundEvent, OutboundEnvelope
from .errors import AdapterError, DecodeError, ParseError
from .wsgi_adapter import (
    LambdaHandler,
    Request,
    ResponseRecorder,
    build_url,
    decode_event,
    encode_response,
    handler,
    parse_target,
)

__all__ = [
    "AdapterConfig",
    "AdapterError",
    "DecodeError",
    "InboundEvent",
    "LambdaHandler",
    "OutboundEnvelope",
    "ParseError",
    "Request",
    "ResponseRecorder",
    "build_url",
    "decode_event",
    "encode_response",
    "handler",
    "parse_target",
]
