"""
Token approval orchestration.

An approval run walks every approval target through three phases:

- CHECKING: read each USDC allowance and the conditional-token operator
  approval for every target.
- APPROVING: approve every USDC variant for the maximum amount, then grant
  conditional-token operator approval, one transaction at a time with a fixed
  cooldown around each.
- VERIFYING: repeat the CHECKING reads to show the resulting on-chain state.

Failures never abort a run: read failures are recorded on the reading and
transaction failures become failed outcomes, and the run moves on to the next
token or target. A run that stops part way cannot be resumed; running again
starts over from CHECKING.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence, Union

from polymarket_cli.chain import ChainBackend, allowance, is_approved_for_all
from polymarket_cli.config import ChainConfig
from polymarket_cli.constants import DEFAULT_APPROVAL_COOLDOWN, MAX_UINT256
from polymarket_cli.exceptions import NetworkError, TransactionError
from polymarket_cli.types import (
    AllowanceReading,
    ApprovalOutcome,
    ApprovalPhase,
    ApprovalReport,
    ApprovalTarget,
    OperatorApprovalReading,
    TokenContract,
)

logger = logging.getLogger(__name__)

CTF_LABEL = "CTF"

Reading = Union[AllowanceReading, OperatorApprovalReading]

NEXT_PHASE: Dict[ApprovalPhase, ApprovalPhase] = {
    ApprovalPhase.CHECKING: ApprovalPhase.APPROVING,
    ApprovalPhase.APPROVING: ApprovalPhase.VERIFYING,
    ApprovalPhase.VERIFYING: ApprovalPhase.DONE,
}


def build_approval_targets(config: ChainConfig) -> List[ApprovalTarget]:
    """Build the ordered list of contracts that need token approvals.

    The order is CTF Exchange, Neg Risk CTF Exchange, then the Neg Risk Adapter
    when the chain has one.
    """
    targets = [
        ApprovalTarget(name="CTF Exchange", address=config.exchange),
        ApprovalTarget(name="Neg Risk CTF Exchange", address=config.neg_risk_exchange),
    ]
    if config.neg_risk_adapter:
        targets.append(ApprovalTarget(name="Neg Risk Adapter", address=config.neg_risk_adapter))
    return targets


class ApprovalOrchestrator:
    """Runs the check, approve and verify phases over a set of targets."""

    def __init__(
        self,
        chain: ChainBackend,
        owner: str,
        tokens: Sequence[TokenContract],
        ctf_address: str,
        cooldown: float = DEFAULT_APPROVAL_COOLDOWN,
        sleep: Callable[[float], None] = time.sleep,
        on_phase: Optional[Callable[[ApprovalPhase], None]] = None,
        on_reading: Optional[Callable[[Reading], None]] = None,
        on_outcome: Optional[Callable[[ApprovalOutcome], None]] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            chain: Chain capability used for reads and transactions.
            owner: The address granting approvals.
            tokens: USDC token variants to approve, in order.
            ctf_address: The conditional-token (ERC-1155) contract.
            cooldown: Seconds to wait around each transaction.
            sleep: Sleep function, injectable for tests.
            on_phase: Called when a phase starts.
            on_reading: Called with each reading as soon as it is taken.
            on_outcome: Called with each transaction outcome as soon as it
                is known.
        """
        self._chain = chain
        self._owner = owner
        self._tokens = list(tokens)
        self._ctf_address = ctf_address
        self._cooldown = cooldown
        self._sleep = sleep
        self._on_phase = on_phase
        self._on_reading = on_reading
        self._on_outcome = on_outcome
        self._handlers: Dict[ApprovalPhase, Callable[[List[ApprovalTarget], ApprovalReport], None]] = {
            ApprovalPhase.CHECKING: self._read_state,
            ApprovalPhase.APPROVING: self._approve,
            ApprovalPhase.VERIFYING: self._read_state,
        }
        self.phase: Optional[ApprovalPhase] = None

    def run(self, targets: Sequence[ApprovalTarget], dry_run: bool = False) -> ApprovalReport:
        """Run all phases over the targets.

        Args:
            targets: Approval targets, processed in the given order.
            dry_run: Return the targets without touching the chain.

        Returns:
            The report of readings and outcomes.
        """
        targets = list(targets)
        report = ApprovalReport(targets=targets, dry_run=dry_run)
        if dry_run:
            logger.info("Dry run: %d targets, no transactions", len(targets))
            return report

        self.phase = ApprovalPhase.CHECKING
        while self.phase is not ApprovalPhase.DONE:
            logger.info("phase = %s", self.phase.value)
            if self._on_phase:
                self._on_phase(self.phase)
            self._handlers[self.phase](targets, report)
            self.phase = NEXT_PHASE[self.phase]

        logger.info(
            "Approvals complete: %d succeeded, %d failed",
            len(report.outcomes) - len(report.failures),
            len(report.failures),
        )
        return report

    def _cool_down(self) -> None:
        if self._cooldown > 0:
            logger.debug("Waiting %.1fs...", self._cooldown)
        self._sleep(self._cooldown)

    def _read_state(self, targets: List[ApprovalTarget], report: ApprovalReport) -> None:
        for target in targets:
            for token in self._tokens:
                reading = AllowanceReading(phase=self.phase, target=target, token=token)
                try:
                    reading.allowance = allowance(
                        self._chain, token.address, self._owner, target.address
                    )
                except NetworkError as e:
                    reading.error = str(e)
                    logger.warning(
                        "contract = %s, token = %s, error = %s, failed to check allowance",
                        target.name,
                        token.name,
                        e,
                    )
                report.readings.append(reading)
                if self._on_reading:
                    self._on_reading(reading)

            operator = OperatorApprovalReading(phase=self.phase, target=target)
            try:
                operator.approved = is_approved_for_all(
                    self._chain, self._ctf_address, self._owner, target.address
                )
            except NetworkError as e:
                operator.error = str(e)
                logger.warning(
                    "contract = %s, error = %s, failed to check CTF approval",
                    target.name,
                    e,
                )
            report.operator_readings.append(operator)
            if self._on_reading:
                self._on_reading(operator)

    def _transact(self, target: ApprovalTarget, label: str, contract: str, method: str, *args) -> ApprovalOutcome:
        outcome = ApprovalOutcome(target=target, token=label)
        try:
            tx_hash = self._chain.send(contract, method, *args)
            outcome.tx_hash = self._chain.watch(tx_hash)
            logger.info("contract = %s, token = %s, tx = %s, approved", target.name, label, outcome.tx_hash)
        except (TransactionError, NetworkError) as e:
            outcome.error = str(e)
            logger.warning("contract = %s, token = %s, error = %s, approval failed", target.name, label, e)
        if self._on_outcome:
            self._on_outcome(outcome)
        return outcome

    def _approve(self, targets: List[ApprovalTarget], report: ApprovalReport) -> None:
        for target in targets:
            logger.info("contract = %s, address = %s, approving", target.name, target.address)
            self._cool_down()

            for token in self._tokens:
                report.outcomes.append(
                    self._transact(target, token.name, token.address, "approve", target.address, MAX_UINT256)
                )
                self._cool_down()

            self._cool_down()
            report.outcomes.append(
                self._transact(target, CTF_LABEL, self._ctf_address, "setApprovalForAll", target.address, True)
            )
            self._cool_down()


def run_approvals(
    chain: Optional[ChainBackend],
    owner: Optional[str],
    targets: Sequence[ApprovalTarget],
    tokens: Sequence[TokenContract],
    ctf_address: str,
    dry_run: bool = False,
    cooldown: float = DEFAULT_APPROVAL_COOLDOWN,
    sleep: Callable[[float], None] = time.sleep,
    on_phase: Optional[Callable[[ApprovalPhase], None]] = None,
    on_reading: Optional[Callable[[Reading], None]] = None,
    on_outcome: Optional[Callable[[ApprovalOutcome], None]] = None,
) -> ApprovalReport:
    """Approve every token for every target.

    A dry run needs neither a chain nor an owner and performs no network calls.
    The callbacks are passed through to `ApprovalOrchestrator`.
    """
    if dry_run:
        return ApprovalReport(targets=list(targets), dry_run=True)
    if chain is None or owner is None:
        raise ValueError("chain and owner are required unless dry_run is set")
    orchestrator = ApprovalOrchestrator(
        chain,
        owner,
        tokens,
        ctf_address,
        cooldown=cooldown,
        sleep=sleep,
        on_phase=on_phase,
        on_reading=on_reading,
        on_outcome=on_outcome,
    )
    return orchestrator.run(targets)
