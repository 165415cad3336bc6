from __future__ import annotations

"""
Governance API: proposals, votes, close/void.

Routes
------
- POST /governance/proposals                   create a proposal
- POST /governance/proposals/{id}/votes        cast a vote
- POST /governance/proposals/{id}/close        owner tallies and closes
- POST /governance/proposals/{id}/void         owner voids if nobody supports
- GET  /governance/proposals/count             total proposals ever created
- GET  /governance/proposals                   id -> text, ascending ids
- GET  /governance/proposals/{id}              one proposal (404 if unknown)
- GET  /governance/proposals/{id}/votes        votes in casting order
- GET  /governance/stats                       running counters

Mutating routes take the caller identity from the caller header (see
security.current_user). Ledger errors become 404 / 409 / 403 with the
error code as detail.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..executor import LedgerExecutor
from ..runtime.errors import AlreadyClosed, LedgerError, NotAuthorized, NotFound
from ..runtime.proposals import Proposal
from ..security.current_user import require_caller_id
from . import get_executor

router = APIRouter(prefix="/governance", tags=["governance"])

__all__ = [
    "router",
    "ProposalCreate",
    "ProposalVoteRequest",
    "ProposalOut",
]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ProposalCreate(BaseModel):
    text: str


class ProposalCreated(BaseModel):
    ok: bool = True
    proposal_id: int


class ProposalVoteRequest(BaseModel):
    supports: bool


class OkResponse(BaseModel):
    ok: bool = True


class CloseResponse(BaseModel):
    ok: bool = True
    accepted: bool


class VoidResponse(BaseModel):
    ok: bool = True
    voided: bool


class CountResponse(BaseModel):
    count: int


class ProposalsResponse(BaseModel):
    proposals: Dict[int, str] = Field(default_factory=dict)


class VoteOut(BaseModel):
    voter: str
    supports: bool


class VotesResponse(BaseModel):
    proposal_id: int
    votes: List[VoteOut] = Field(default_factory=list)


class ProposalOut(BaseModel):
    id: int
    text: str
    owner: str
    fate: str
    yes_count: int
    vote_count: int


class StatsResponse(BaseModel):
    proposal_count: int
    successful_count: int
    rejected_count: int
    open_count: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_STATUS_FOR_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    AlreadyClosed: status.HTTP_409_CONFLICT,
    NotAuthorized: status.HTTP_403_FORBIDDEN,
}


def _http_error(err: LedgerError) -> HTTPException:
    code = _STATUS_FOR_ERROR.get(type(err), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=err.code)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@router.post("/proposals", response_model=ProposalCreated)
def create_proposal(
    payload: ProposalCreate,
    caller_id: str = Depends(require_caller_id),
    ex: LedgerExecutor = Depends(get_executor),
) -> ProposalCreated:
    pid = ex.create_proposal(caller_id, payload.text)
    return ProposalCreated(proposal_id=pid)


@router.post("/proposals/{proposal_id}/votes", response_model=OkResponse)
def vote_on_proposal(
    proposal_id: int,
    payload: ProposalVoteRequest,
    caller_id: str = Depends(require_caller_id),
    ex: LedgerExecutor = Depends(get_executor),
) -> OkResponse:
    try:
        ex.vote_on_proposal(caller_id, proposal_id, payload.supports)
    except LedgerError as e:
        raise _http_error(e)
    return OkResponse()


@router.post("/proposals/{proposal_id}/close", response_model=CloseResponse)
def close_proposal(
    proposal_id: int,
    caller_id: str = Depends(require_caller_id),
    ex: LedgerExecutor = Depends(get_executor),
) -> CloseResponse:
    try:
        accepted = ex.close_proposal(caller_id, proposal_id)
    except LedgerError as e:
        raise _http_error(e)
    return CloseResponse(accepted=accepted)


@router.post("/proposals/{proposal_id}/void", response_model=VoidResponse)
def void_proposal(
    proposal_id: int,
    caller_id: str = Depends(require_caller_id),
    ex: LedgerExecutor = Depends(get_executor),
) -> VoidResponse:
    try:
        voided = ex.void_proposal(caller_id, proposal_id)
    except LedgerError as e:
        raise _http_error(e)
    return VoidResponse(voided=voided)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/proposals/count", response_model=CountResponse)
def get_proposal_count(ex: LedgerExecutor = Depends(get_executor)) -> CountResponse:
    return CountResponse(count=ex.get_proposal_count())


@router.get("/proposals", response_model=ProposalsResponse)
def get_all_proposals(ex: LedgerExecutor = Depends(get_executor)) -> ProposalsResponse:
    return ProposalsResponse(proposals=ex.get_all_proposals())


@router.get("/proposals/{proposal_id}", response_model=ProposalOut)
def get_proposal(proposal_id: int, ex: LedgerExecutor = Depends(get_executor)) -> ProposalOut:
    prop: Optional[Proposal] = ex.get_proposal(proposal_id)
    if prop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NotFound.code)
    return ProposalOut(
        id=prop.id,
        text=prop.text,
        owner=prop.owner,
        fate=prop.fate.value,
        yes_count=prop.yes_count(),
        vote_count=len(prop.votes),
    )


@router.get("/proposals/{proposal_id}/votes", response_model=VotesResponse)
def get_all_votes(proposal_id: int, ex: LedgerExecutor = Depends(get_executor)) -> VotesResponse:
    votes = [VoteOut(voter=voter, supports=supports) for voter, supports in ex.get_all_votes(proposal_id)]
    return VotesResponse(proposal_id=proposal_id, votes=votes)


@router.get("/stats", response_model=StatsResponse)
def get_stats(ex: LedgerExecutor = Depends(get_executor)) -> StatsResponse:
    return StatsResponse(**ex.get_stats())
