"""
DRL node-scoring plugin.

One scheduling cycle per pod runs Pre-Score, Score (once per node) and
Normalize-Score in that order against a CycleContext owned by the host.
The only state carried from one cycle to the next is the pending decision:
the state observed in Pre-Score, the node chosen in Normalize-Score and its
reward. It becomes a replay transition at the start of the following cycle,
once the next state is known.
"""

import asyncio
from dataclasses import dataclass
import threading
from typing import List, Optional, Sequence

import numpy as np

from drl_scheduler.config import SchedulerConfig
from drl_scheduler.core.framework import (
    CycleContext, Decision, NodeScore, Pod, PreScoreResult,
)
from drl_scheduler.core.rewards import RewardAggregator, RewardCalculator
from drl_scheduler.data.memory import Transition
from drl_scheduler.data.prometheus import PrometheusClient
from drl_scheduler.models.agent import DQNAgent
from drl_scheduler.monitoring.metrics import (
    DQN_DECISIONS_COUNTER, DQN_DEGRADED_COUNTER, DQN_REWARD_GAUGE,
    PHASE_DURATION_HISTOGRAM, PHASE_ERRORS_COUNTER,
)
from drl_scheduler.utils.exceptions import (
    CheckpointError, DRLSchedulerError, MissingCycleStateError,
    MissingServiceLabelError, PredictionError,
)
from drl_scheduler.utils.logging_config import OperationLogger, get_logger

logger = get_logger("Plugin")


@dataclass
class PendingDecision:
    state: Optional[np.ndarray] = None
    action: Optional[int] = None
    reward: Optional[float] = None

    @property
    def complete(self) -> bool:
        return self.state is not None and self.action is not None and self.reward is not None


class DRLSchedulerPlugin:
    """Scores candidate nodes with a DQN agent and learns from its own placements."""

    NAME = "DRLScheduler"

    def __init__(self,
                 agent: DQNAgent,
                 metrics_client: PrometheusClient,
                 config: Optional[SchedulerConfig] = None,
                 reward_calculator: Optional[RewardCalculator] = None,
                 aggregator: Optional[RewardAggregator] = None):
        self.agent = agent
        self.metrics_client = metrics_client
        self.config = config or SchedulerConfig()
        self.reward_calculator = reward_calculator or RewardCalculator()
        self.aggregator = aggregator if aggregator is not None else RewardAggregator()

        self._pending = PendingDecision()
        self._pending_lock = threading.Lock()
        self._last_checkpoint_step = agent.steps

    def name(self) -> str:
        return self.config.plugin_name or self.NAME

    def score_extensions(self) -> "DRLSchedulerPlugin":
        return self

    @property
    def pending(self) -> PendingDecision:
        """Copy of the decision waiting for its next state."""
        with self._pending_lock:
            return PendingDecision(self._pending.state, self._pending.action, self._pending.reward)

    async def pre_score(self, ctx: CycleContext, pod: Pod, nodes: Sequence[str]) -> PreScoreResult:
        """
        Observe the cluster, learn from the previous decision and predict node values.

        Raises:
            MetricsQueryError: If the cluster state cannot be fetched; nothing is changed
            FitError: If learning from the previous decision fails; it stays pending
            PredictionError: If prediction fails and degrading is disabled
        """
        ctx.pod = pod
        if not nodes:
            logger.info("No candidate nodes", pod=pod.name)
            return PreScoreResult.NO_NODES_AVAILABLE

        with PHASE_DURATION_HISTOGRAM.labels(phase="pre_score").time(), \
                OperationLogger(logger, "pre_score", pod=pod.name, nodes=len(nodes)):
            try:
                return await self._pre_score(ctx, list(nodes))
            except DRLSchedulerError as e:
                PHASE_ERRORS_COUNTER.labels(phase="pre_score", error=type(e).__name__).inc()
                raise

    async def _pre_score(self, ctx: CycleContext, nodes: List[str]) -> PreScoreResult:
        loop = asyncio.get_running_loop()
        state = await self.metrics_client.query_cluster_features(nodes)

        with self._pending_lock:
            previous = self._pending
            self._pending = PendingDecision(state=state)

        if previous.complete:
            transition = Transition(previous.state, previous.action, previous.reward, state)
            try:
                await loop.run_in_executor(None, self.agent.observe, transition)
            except DRLSchedulerError:
                with self._pending_lock:
                    restored = self._pending.state is state
                    if restored:
                        self._pending = previous
                if not restored:
                    # A newer cycle already owns the pending slot
                    logger.warning("Learning failed after a newer cycle started, dropping previous decision",
                                   action=previous.action, reward=previous.reward)
                raise
            await self._maybe_checkpoint(loop)

        ctx.node_map = {name: index for index, name in enumerate(nodes)}
        ctx.state = state

        try:
            ctx.prediction = await loop.run_in_executor(None, self.agent.predict, state)
        except PredictionError as e:
            if not self.config.degrade_on_prediction_error:
                raise
            logger.warning(f"Prediction failed, scoring without preference: {e}")
            ctx.prediction = np.zeros(len(nodes))
            ctx.degraded = True
            DQN_DEGRADED_COUNTER.inc()
            return PreScoreResult.DEGRADED

        return PreScoreResult.SCORED

    def score(self, ctx: CycleContext, pod: Pod, node_name: str) -> float:
        """
        Raw score of one node from the prediction cached by Pre-Score.

        Raises:
            MissingCycleStateError: If Pre-Score did not run for this cycle or
                did not see ``node_name``
        """
        index = ctx.node_map.get(node_name)
        if ctx.prediction is None or index is None:
            PHASE_ERRORS_COUNTER.labels(phase="score", error=MissingCycleStateError.__name__).inc()
            logger.error("Score called without a cached prediction", pod=pod.name, node=node_name)
            raise MissingCycleStateError(
                f"No cached prediction for node {node_name}",
                context={"pod": pod.name, "node": node_name}
            )
        return float(ctx.prediction[index])

    async def normalize_score(self, ctx: CycleContext, pod: Pod, scores: List[NodeScore]) -> None:
        """
        Apply exploration, record the decision and rescale ``scores`` in place.

        Raises:
            MissingCycleStateError: If Pre-Score did not run for this cycle
            MissingServiceLabelError: If the pod lacks its service or role label
        """
        if not scores:
            return

        with PHASE_DURATION_HISTOGRAM.labels(phase="normalize_score").time(), \
                OperationLogger(logger, "normalize_score", pod=pod.name, nodes=len(scores)):
            try:
                await self._normalize_score(ctx, pod, scores)
            except DRLSchedulerError as e:
                PHASE_ERRORS_COUNTER.labels(phase="normalize_score", error=type(e).__name__).inc()
                raise

    async def _normalize_score(self, ctx: CycleContext, pod: Pod, scores: List[NodeScore]) -> None:
        if ctx.state is None:
            raise MissingCycleStateError("Normalize-Score called before Pre-Score", context={"pod": pod.name})

        loop = asyncio.get_running_loop()
        explore_index = await loop.run_in_executor(None, self.agent.choose_action, len(scores))

        explored = explore_index is not None
        if explored:
            chosen = scores[explore_index]
            chosen.score = max(s.score for s in scores) + self.config.exploration_bonus
        else:
            chosen = max(scores, key=lambda s: s.score)
        raw_score = chosen.score

        action = ctx.node_map.get(chosen.name)
        if action is None:
            raise MissingCycleStateError(
                f"Node {chosen.name} was not seen in Pre-Score",
                context={"pod": pod.name, "node": chosen.name}
            )

        service = pod.labels.get(self.config.service_label)
        role = pod.labels.get(self.config.role_label)
        if not service or not role:
            raise MissingServiceLabelError(
                f"Pod {pod.name} needs '{self.config.service_label}' and '{self.config.role_label}' labels",
                context={"pod": pod.name, "labels": dict(pod.labels)}
            )

        reward, components = self.reward_calculator.calculate(ctx.state, action, self.aggregator, service, role)

        with self._pending_lock:
            if self._pending.state is ctx.state:
                self._pending.action = action
                self._pending.reward = reward
            else:
                # Another pod's Pre-Score ran in between; its state is the one pending now
                logger.warning("Decision superseded by a newer cycle, not learning from it", pod=pod.name)

        self.aggregator.record_reward(service, role, reward)
        DQN_REWARD_GAUGE.set(reward)
        DQN_DECISIONS_COUNTER.inc()

        self._rescale(scores)

        ctx.decision = Decision(
            node_name=chosen.name,
            index=action,
            explored=explored,
            raw_score=raw_score,
            reward=reward,
        )
        logger.decision_log(
            chosen.name, explored,
            pod=pod.name, service=service, role=role, reward=reward,
            degraded=ctx.degraded, **components
        )

    def _rescale(self, scores: List[NodeScore]) -> None:
        """Min-max rescale into [0, max_node_score]; equal scores all become 0."""
        highest = max(s.score for s in scores)
        lowest = min(s.score for s in scores)
        spread = highest - lowest
        for s in scores:
            if spread > 0:
                s.score = (s.score - lowest) / spread * self.config.max_node_score
            else:
                s.score = 0.0

    async def _maybe_checkpoint(self, loop: asyncio.AbstractEventLoop) -> None:
        path = self.config.checkpoint_path
        steps = self.agent.steps
        if not path or steps == self._last_checkpoint_step:
            return
        if steps - self._last_checkpoint_step < self.config.checkpoint_interval:
            return

        self._last_checkpoint_step = steps
        try:
            await loop.run_in_executor(None, self.agent.save_checkpoint, path)
        except CheckpointError as e:
            # The model in memory is unaffected; the next interval retries
            PHASE_ERRORS_COUNTER.labels(phase="checkpoint", error=type(e).__name__).inc()
            logger.error(f"Checkpoint failed: {e}", exc_info=True)
