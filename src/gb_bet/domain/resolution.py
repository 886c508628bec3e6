"""Resolution protocols: who may declare a winner, and when.

Two interchangeable strategies, selected by Bet.resolution_type:

  NeutralPartyProtocol    creator or designated neutral party declares the
                          winner in a single `resolve` call; no quorum.
  EveryoneAgreesProtocol  every participant signals agreement via `agree`;
                          the call that completes unanimity must carry the
                          winning side, and no earlier proposal may differ.

Protocols are pure: `decide` inspects the bet as it would look after the
caller's command and never mutates it, so every rejection happens before any
state change.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.gb_bet.domain.ledger import require_participant, require_side
from src.gb_bet.domain.models import Bet
from src.gb_common.enums import CONSENSUS_RESOLVER, ResolutionType
from src.gb_common.errors import BetValidationError, IllegalTransitionError


@dataclass(frozen=True)
class ResolutionDecision:
    winning_side: str
    resolved_by: str


class ResolutionProtocol(ABC):
    resolution_type: ResolutionType
    command: str  # the bet command that drives this protocol
    authority: str  # human-readable role, used in rejections

    def check_command(self, bet: Bet, command: str) -> None:
        if command != self.command:
            raise IllegalTransitionError(
                command,
                bet.status,
                required_role=f"{self.authority} via '{self.command}'",
            )

    @abstractmethod
    def authorize(self, bet: Bet, actor_id: str) -> None:
        """Raise if actor_id holds no resolution authority on this bet."""

    @abstractmethod
    def decide(
        self, bet: Bet, actor_id: str, winning_side: str | None
    ) -> ResolutionDecision | None:
        """Return the decision this command produces, or None if the bet stays open."""


class NeutralPartyProtocol(ResolutionProtocol):
    resolution_type = ResolutionType.NEUTRAL_PARTY
    command = "resolve"
    authority = "creator or neutral party"

    def authorize(self, bet: Bet, actor_id: str) -> None:
        if actor_id not in (bet.created_by, bet.neutral_party_id):
            raise IllegalTransitionError(
                self.command, bet.status, required_role=self.authority
            )

    def decide(
        self, bet: Bet, actor_id: str, winning_side: str | None
    ) -> ResolutionDecision | None:
        if winning_side is None:
            raise BetValidationError("winning_side is required")
        require_side(bet, winning_side)
        return ResolutionDecision(winning_side=winning_side, resolved_by=actor_id)


class EveryoneAgreesProtocol(ResolutionProtocol):
    resolution_type = ResolutionType.EVERYONE_AGREES
    command = "agree"
    authority = "participant"

    def authorize(self, bet: Bet, actor_id: str) -> None:
        require_participant(bet, actor_id)

    def decide(
        self, bet: Bet, actor_id: str, winning_side: str | None
    ) -> ResolutionDecision | None:
        if winning_side is not None:
            require_side(bet, winning_side)

        others = [p for p in bet.participants if p.user_id != actor_id]
        if not all(p.has_agreed for p in others):
            return None

        # This call completes unanimity.
        if winning_side is None:
            raise BetValidationError(
                "winning_side is required on the agreement that completes consensus"
            )
        dissent = [
            p.user_id
            for p in others
            if p.agreed_side is not None and p.agreed_side != winning_side
        ]
        if dissent:
            raise BetValidationError(
                f"Participants {', '.join(dissent)} agreed on a different winner; "
                "they must re-agree before the bet can resolve"
            )
        return ResolutionDecision(winning_side=winning_side, resolved_by=CONSENSUS_RESOLVER)


_PROTOCOLS: dict[str, ResolutionProtocol] = {
    ResolutionType.NEUTRAL_PARTY.value: NeutralPartyProtocol(),
    ResolutionType.EVERYONE_AGREES.value: EveryoneAgreesProtocol(),
}


def protocol_for(resolution_type: str) -> ResolutionProtocol:
    try:
        return _PROTOCOLS[resolution_type]
    except KeyError:
        raise BetValidationError(f"Unknown resolution type: {resolution_type}") from None
