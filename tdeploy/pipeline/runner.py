"""Sequential, fail-fast execution of the deployment steps.

Steps run one after another. The first failing step stops the run and every
later step is reported as ``not_run``; there are no retries. A failed
deployment is fixed by hand and the pipeline rerun.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from tdeploy.core.config import DeployConfig
from tdeploy.core.result import Err, Ok, Result
from tdeploy.output.console import Style
from tdeploy.pipeline.context import DeployContext
from tdeploy.pipeline.model import DeployError, ToplevelMode, TriggerParams
from tdeploy.pipeline.steps import STEPS, Step

StepStatus = Literal["succeeded", "skipped", "failed", "not_run"]


@dataclass(frozen=True, slots=True)
class StepOutcome:
    step_id: str
    display_name: str
    status: StepStatus
    reason: str | None = None
    error: DeployError | None = None


@dataclass(frozen=True, slots=True)
class PipelineReport:
    outcomes: tuple[StepOutcome, ...]

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def failure(self) -> StepOutcome | None:
        for outcome in self.outcomes:
            if outcome.status == "failed":
                return outcome
        return None

    def status_of(self, step_id: str) -> StepStatus | None:
        for outcome in self.outcomes:
            if outcome.step_id == step_id:
                return outcome.status
        return None

    def ran(self) -> list[str]:
        return [o.step_id for o in self.outcomes if o.status in ("succeeded", "failed")]


def _mode_for_gating(step: Step, ctx: DeployContext) -> Result[ToplevelMode | None, DeployError]:
    if not step.skip_when_mode_skip:
        return Ok(None)
    mode = ctx.state.get_mode()
    if isinstance(mode, Err):
        return mode
    return Ok(mode.value)


def _collect_secrets(step: Step, ctx: DeployContext) -> Result[dict[str, str], DeployError]:
    found: dict[str, str] = {}
    missing: list[str] = []
    for name in step.secrets:
        value = ctx.secret(name)
        if value is None:
            missing.append(name)
        else:
            found[name] = value

    if missing and not ctx.dry_run:
        return Err(
            DeployError(
                kind="credential_missing",
                message=f"missing credentials: {', '.join(missing)}",
                hint="Map the pipeline secret into the step environment",
            )
        )
    for name in missing:
        ctx.console.warning(f"{name} is not set (dry-run)")
    return Ok(found)


def _run_step(step: Step, ctx: DeployContext) -> StepOutcome:
    mode = _mode_for_gating(step, ctx)
    if isinstance(mode, Err):
        return StepOutcome(step.id, step.display_name, "failed", error=mode.error)

    reason = step.skip_reason(params=ctx.params, config=ctx.config, mode=mode.value)
    if reason is not None:
        ctx.console.print(f"skipped: {step.display_name} ({reason})", Style.DIM)
        return StepOutcome(step.id, step.display_name, "skipped", reason=reason)

    ctx.console.header(step.display_name)

    secrets = _collect_secrets(step, ctx)
    if isinstance(secrets, Err):
        return StepOutcome(step.id, step.display_name, "failed", error=secrets.error)

    runner = ctx.runner.with_secrets(secrets.value) if secrets.value else ctx.runner
    result = step.action(ctx, runner)
    if isinstance(result, Err):
        return StepOutcome(step.id, step.display_name, "failed", error=result.error)
    return StepOutcome(step.id, step.display_name, "succeeded")


def run_pipeline(ctx: DeployContext, steps: tuple[Step, ...] = STEPS) -> PipelineReport:
    outcomes: list[StepOutcome] = []
    failed = False
    for step in steps:
        if failed:
            outcomes.append(StepOutcome(step.id, step.display_name, "not_run"))
            continue

        outcome = _run_step(step, ctx)
        outcomes.append(outcome)
        if outcome.status == "failed":
            failed = True
            if outcome.error is not None:
                ctx.console.error(f"{step.display_name}: {outcome.error.message}")
                if outcome.error.hint:
                    ctx.console.print(f"hint: {outcome.error.hint}", Style.DIM)

    return PipelineReport(outcomes=tuple(outcomes))


@dataclass(frozen=True, slots=True)
class PlannedStep:
    step: Step
    runs: bool
    reason: str | None


def plan_pipeline(
    *,
    params: TriggerParams,
    config: DeployConfig,
    mode: ToplevelMode,
    steps: tuple[Step, ...] = STEPS,
) -> list[PlannedStep]:
    """Which steps would run for ``params`` once the mode resolves to ``mode``."""
    out: list[PlannedStep] = []
    for step in steps:
        reason = step.skip_reason(params=params, config=config, mode=mode)
        out.append(PlannedStep(step=step, runs=reason is None, reason=reason))
    return out
