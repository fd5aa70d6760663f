"""Request Dependencies — FastAPI providers for services, the voter key and the submitter.

Invariants:
    - Services are read from app.state.services (built once by the lifespan)
    - The voter key comes only from the configured header; the core never sees the request
    - A missing or malformed voter key is a ValidationError (400)
    - Rate limits are keyed by the client address, never by the caller-chosen voter key

Design Decisions:
    - The forwarded-address header is opt-in: without a trusted proxy in front,
      any client could set it
"""

from fastapi import Request

from accentvote.core.vote_rules import validate_voter_key
from accentvote.services.distribution_reader import DistributionReader
from accentvote.services.tabulation_engine import TabulationEngine


class HeaderVoterIdentity:
    """VoterIdentity that trusts an opaque key header set by the upstream auth layer."""

    def __init__(self, header_name: str = "X-Voter-Key"):
        self.header_name = header_name

    def resolve(self, request: Request) -> str | None:
        value = request.headers.get(self.header_name)
        return value.strip() if value else None


class ClientAddress:
    """Submitter key for rate limiting: proxy header if configured, else the peer address."""

    def __init__(self, forwarded_header: str | None = None):
        self.forwarded_header = forwarded_header

    def resolve(self, request: Request) -> str | None:
        if self.forwarded_header:
            forwarded = request.headers.get(self.forwarded_header, "")
            # left-most entry is the original client
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        return request.client.host if request.client else None


def get_engine(request: Request) -> TabulationEngine:
    return request.app.state.services.engine


def get_reader(request: Request) -> DistributionReader:
    return request.app.state.services.reader


def get_voter_id(request: Request) -> str:
    voter_id = request.app.state.services.identity.resolve(request)
    validate_voter_key(voter_id)
    return voter_id


def get_submitter_key(request: Request) -> str | None:
    return request.app.state.services.submitter.resolve(request)
