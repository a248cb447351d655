"""
Client address resolution.

Order of precedence: first ``X-Forwarded-For`` entry, ``X-Real-IP``, then the
socket peer. Proxy headers are only honoured when the deployment sits behind a
trusted proxy.
"""

from typing import Mapping, Optional

UNKNOWN_CLIENT = "unknown"


def resolve_client_ip(
    headers: Mapping[str, str],
    peer_host: Optional[str],
    trust_proxy_headers: bool = True,
) -> str:
    """
    Resolve the originating client address for a request.

    Args:
        headers: Request headers (lower-case keys)
        peer_host: Address of the directly connected peer, if known
        trust_proxy_headers: Whether forwarding headers may be used

    Returns:
        str: Client address, or "unknown" when nothing is available
    """
    if trust_proxy_headers:
        forwarded = headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first

        real_ip = (headers.get("x-real-ip") or "").strip()
        if real_ip:
            return real_ip

    return peer_host or UNKNOWN_CLIENT
