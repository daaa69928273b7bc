"""
incentive_services.run_orchestrator -- one scheme run, end to end.

Responsibility:
    Validate the run inputs, compile the scheme, and sequence the engines:
    selection -> per-agent processing and aggregation -> qualification ->
    tiered payout -> credit splits. Assemble the ``RunResult``.

Architecture position:
    Services -- orchestration over config + engines. The only layer that
    reads the datasets mapping and the only layer that binds LogContext.

Invariants enforced:
    - Every fatal input problem is raised before any record is processed.
    - Each run builds a fresh RunResult; nothing is shared across runs.
    - Agents are processed independently. With ``max_workers`` > 1 they
      run on a thread pool, but results are merged in agent
      first-appearance order, so output ordering never depends on
      scheduling.
    - The agent's own payout is recorded before and independently of any
      credit distribution.

Failure modes:
    - ``MissingSchemeError`` -- scheme absent or not a mapping.
    - ``InvalidDatasetsError`` -- datasets absent or not a mapping.
    - ``InvalidRunDateError`` -- run-as-of not ``YYYY-MM-DD``.
    - ``InvalidSchemeDateError``, ``BaseMappingError``,
      ``RuleDefinitionError`` -- from parsing and compiling the scheme.
    - ``BaseDatasetNotFoundError`` -- base dataset absent or not a list.
    Everything else is recoverable and is reported through logging or the
    rule hit log.
"""

from __future__ import annotations

import contextvars
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Sequence
from uuid import uuid4

from incentive_config.compiler import CompiledScheme, compile_scheme
from incentive_config.loader import parse_scheme
from incentive_config.schema import SchemeDefinition
from incentive_engines.aggregation import AgentAggregate, aggregate_agent, partition_by_agent
from incentive_engines.credit_split import SplitOutcome, distribute_credit
from incentive_engines.hierarchy import load_hierarchy
from incentive_engines.qualification import (
    QualificationOutcome,
    evaluate_agent_qualification,
)
from incentive_engines.selection import select_records, to_source_records
from incentive_engines.tiers import compute_marginal_payout
from incentive_kernel.domain.clock import Clock, SystemClock
from incentive_kernel.domain.types import (
    CreditDistributionEntry,
    HierarchyRecord,
    ProcessedRecord,
    RuleLogEntry,
    RunResult,
    SourceRecord,
)
from incentive_kernel.domain.values import DEFAULT_POLICY, ZERO, DecimalPolicy, parse_iso_date
from incentive_kernel.exceptions import (
    BaseDatasetNotFoundError,
    InvalidDatasetsError,
    InvalidRunDateError,
    MissingSchemeError,
)
from incentive_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.run_orchestrator")


@dataclass(frozen=True)
class RunOptions:
    """
    Per-run knobs.

    ``max_workers`` None or 1 processes agents sequentially.
    """

    policy: DecimalPolicy = DEFAULT_POLICY
    clock: Clock = field(default_factory=SystemClock)
    max_workers: int | None = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


@dataclass(frozen=True)
class AgentRunResult:
    """Everything the run produced for one agent."""

    agent_id: str
    aggregate: AgentAggregate
    qualification: QualificationOutcome
    base_payout: Decimal
    split: SplitOutcome

    @property
    def log_entries(self) -> list[RuleLogEntry]:
        return [
            *self.aggregate.log_entries,
            *self.qualification.log_entries,
            *self.split.log_entries,
        ]


class RunOrchestrator:
    """
    Runs one scheme over one data snapshot.

    Contract:
        Receives the decimal policy, clock and worker count through
        ``RunOptions``. ``run()`` is a pure function of
        (scheme, datasets, run_as_of) apart from log timestamps.
    Guarantees:
        - Two runs over the same inputs with a ``DeterministicClock``
          produce equal results.
        - Recoverable problems never abort the run.
    Non-goals:
        - Does not read files or persist results (see ``incentive_ingestion``
          and the CLI).
    """

    def __init__(self, options: RunOptions | None = None) -> None:
        self._options = options or RunOptions()

    @property
    def options(self) -> RunOptions:
        return self._options

    # ------------------------------------------------------------------
    # Input validation
    # ------------------------------------------------------------------

    @staticmethod
    def prepare_scheme(scheme: Any) -> CompiledScheme:
        """Accept a compiled scheme, a parsed definition, or an authored mapping."""
        if isinstance(scheme, CompiledScheme):
            return scheme
        if isinstance(scheme, SchemeDefinition):
            return compile_scheme(scheme)
        if not isinstance(scheme, Mapping):
            raise MissingSchemeError(type(scheme).__name__)
        return compile_scheme(parse_scheme(scheme))

    @staticmethod
    def parse_run_date(run_as_of: Any) -> date:
        parsed = parse_iso_date(run_as_of)
        if parsed is None:
            raise InvalidRunDateError(run_as_of)
        return parsed

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        scheme: Any,
        datasets: Mapping[str, Sequence[Any]],
        run_as_of: date | str,
    ) -> RunResult:
        """Execute the scheme and return a fresh RunResult."""
        if not isinstance(scheme, (Mapping, SchemeDefinition, CompiledScheme)):
            raise MissingSchemeError(type(scheme).__name__)
        if not isinstance(datasets, Mapping):
            raise InvalidDatasetsError(type(datasets).__name__)
        run_date = self.parse_run_date(run_as_of)
        compiled = self.prepare_scheme(scheme)

        base_rows = datasets.get(compiled.base_file)
        if not isinstance(base_rows, (list, tuple)):
            raise BaseDatasetNotFoundError(compiled.base_file)
        hierarchy = self._load_hierarchy(compiled, datasets)

        with LogContext.bind(run_id=str(uuid4()), scheme_name=compiled.name):
            logger.info("scheme_run_started", extra={
                "run_as_of": run_date.isoformat(),
                "base_file": compiled.base_file,
                "base_record_count": len(base_rows),
                "hierarchy_record_count": len(hierarchy),
            })

            records = to_source_records(compiled.base_file, base_rows)
            selected = select_records(records, compiled, run_date)
            partition = partition_by_agent(selected, compiled.agent_field)

            agent_results = self._run_agents(
                partition.groups, compiled, hierarchy, run_date,
            )
            result = self._merge(agent_results)

            logger.info("scheme_run_completed", extra={
                "agent_count": len(result.agent_payouts),
                "record_count": len(result.raw_record_level_data),
                "manager_count": len(result.credit_distributions),
                "unattributed_record_count": len(partition.unattributed),
            })
        return result

    def _load_hierarchy(
        self,
        compiled: CompiledScheme,
        datasets: Mapping[str, Sequence[Any]],
    ) -> tuple[HierarchyRecord, ...]:
        hierarchy_file = compiled.scheme.credit_hierarchy_file
        if not hierarchy_file:
            return ()
        rows = datasets.get(hierarchy_file)
        if rows is None:
            logger.warning("hierarchy_dataset_missing", extra={
                "hierarchy_file": hierarchy_file,
            })
            return ()
        if not isinstance(rows, (list, tuple)):
            logger.warning("hierarchy_dataset_not_a_list", extra={
                "hierarchy_file": hierarchy_file,
                "received_type": type(rows).__name__,
            })
            return ()
        return load_hierarchy(rows)

    def _run_agents(
        self,
        groups: Mapping[str, Sequence[SourceRecord]],
        compiled: CompiledScheme,
        hierarchy: Sequence[HierarchyRecord],
        run_as_of: date,
    ) -> list[AgentRunResult]:
        workers = self._options.max_workers
        if not workers or workers == 1 or len(groups) < 2:
            return [
                self._run_agent(agent_id, records, compiled, hierarchy, run_as_of)
                for agent_id, records in groups.items()
            ]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    contextvars.copy_context().run,
                    self._run_agent, agent_id, records, compiled, hierarchy, run_as_of,
                )
                for agent_id, records in groups.items()
            ]
            return [f.result() for f in futures]

    def _run_agent(
        self,
        agent_id: str,
        records: Sequence[SourceRecord],
        compiled: CompiledScheme,
        hierarchy: Sequence[HierarchyRecord],
        run_as_of: date,
    ) -> AgentRunResult:
        policy = self._options.policy
        clock = self._options.clock
        with LogContext.bind(agent_id=agent_id):
            aggregate = aggregate_agent(
                agent_id, records, compiled, policy=policy, clock=clock,
            )
            qualification = evaluate_agent_qualification(
                agent_id, aggregate.total_credited_amount, compiled,
                policy=policy, clock=clock,
            )
            base_payout = ZERO
            if qualification.qualified:
                base_payout = compute_marginal_payout(
                    aggregate.total_credited_amount,
                    compiled.scheme.payout_tiers,
                    policy,
                )
            split = distribute_credit(
                agent_id, base_payout, compiled.scheme, hierarchy, run_as_of,
                policy=policy, clock=clock,
            )
            logger.debug("agent_processed", extra={
                "qualified": qualification.qualified,
                "total_credited_amount": policy.money(aggregate.total_credited_amount),
                "base_payout": policy.money(base_payout),
                "distribution_count": len(split.distributions),
            })
        return AgentRunResult(
            agent_id=agent_id,
            aggregate=aggregate,
            qualification=qualification,
            base_payout=base_payout,
            split=split,
        )

    def _merge(self, agent_results: Sequence[AgentRunResult]) -> RunResult:
        policy = self._options.policy
        agent_payouts: dict[str, str] = {}
        rule_hit_logs: dict[str, list[RuleLogEntry]] = {}
        credit_distributions: dict[str, list[CreditDistributionEntry]] = {}
        raw_records: list[ProcessedRecord] = []

        for agent in agent_results:
            raw_records.extend(agent.aggregate.records)
            agent_payouts[agent.agent_id] = policy.money(agent.base_payout)
            for credit in agent.split.distributions:
                credit_distributions.setdefault(credit.manager_id, []).append(credit.entry)
            entries = agent.log_entries
            if entries:
                rule_hit_logs[agent.agent_id] = entries

        return RunResult(
            agent_payouts=agent_payouts,
            rule_hit_logs=rule_hit_logs,
            credit_distributions=credit_distributions,
            raw_record_level_data=raw_records,
        )


def run_scheme(
    scheme: Any,
    datasets: Mapping[str, Sequence[Any]],
    run_as_of: date | str,
    *,
    options: RunOptions | None = None,
) -> RunResult:
    """Convenience wrapper: ``RunOrchestrator(options).run(...)``."""
    return RunOrchestrator(options).run(scheme, datasets, run_as_of)
