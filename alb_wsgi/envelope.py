# =============================================================================
# Envelope - ALB event and response records
# =============================================================================
# The load balancer sends one JSON event per request and expects one JSON
# response back. Both shapes are described here:
# https://docs.aws.amazon.com/elasticloadbalancing/latest/application/lambda-functions.html
# =============================================================================

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class InboundEvent:
    """
    Request event as delivered by the load balancer.

    Attributes:
        method: HTTP method, not validated
        path: request path, percent-escaped by the load balancer
        query: query parameters, values percent-escaped
        headers: one string per header name
        body: raw text, or base64 when is_base64_encoded is set
        is_base64_encoded: whether body holds base64
    """
    method: str = "GET"
    path: str = "/"
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False

    @classmethod
    def from_dict(cls, event: Dict[str, Any]) -> "InboundEvent":
        """Build from the decoded JSON event. Null maps and bodies become empty."""
        return cls(
            method=event.get("httpMethod") or "GET",
            path=event.get("path") or "/",
            query=MappingProxyType(dict(event.get("queryStringParameters") or {})),
            headers=MappingProxyType(dict(event.get("headers") or {})),
            body=event.get("body") or "",
            is_base64_encoded=bool(event.get("isBase64Encoded")),
        )


@dataclass
class OutboundEnvelope:
    """Response record returned to the load balancer."""
    status_code: int
    status_description: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "statusDescription": self.status_description,
            "headers": dict(self.headers),
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
        }
