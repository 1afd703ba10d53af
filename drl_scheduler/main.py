"""
Entry point for the DRL scheduler extender.
"""

import os

from aiohttp import web
from dotenv import load_dotenv

from drl_scheduler.config import DRLSchedulerConfig, load_config
from drl_scheduler.core.extender import PLUGIN_KEY, setup_http_server
from drl_scheduler.core.plugin import DRLSchedulerPlugin
from drl_scheduler.core.rewards import RewardAggregator, RewardCalculator
from drl_scheduler.data.prometheus import PrometheusClient
from drl_scheduler.models.agent import DQNAgent
from drl_scheduler.utils.exceptions import CheckpointError
from drl_scheduler.utils.logging_config import get_logger, setup_logging


def build_plugin(config: DRLSchedulerConfig) -> DRLSchedulerPlugin:
    """Wire the agent, metrics client and reward system into a plugin."""
    logger = get_logger("Main")

    agent = DQNAgent.from_config(config.dqn)
    checkpoint_path = config.scheduler.checkpoint_path
    if checkpoint_path and os.path.exists(checkpoint_path):
        try:
            agent.load_checkpoint(checkpoint_path)
        except CheckpointError as e:
            logger.warning(f"Starting from a fresh model: {e}")

    return DRLSchedulerPlugin(
        agent=agent,
        metrics_client=PrometheusClient(config.prometheus),
        config=config.scheduler,
        reward_calculator=RewardCalculator(config.reward),
        aggregator=RewardAggregator(config.reward.max_history),
    )


async def _on_cleanup(app: web.Application) -> None:
    plugin = app[PLUGIN_KEY]
    logger = get_logger("Main")

    await plugin.metrics_client.close()
    if plugin.config.checkpoint_path:
        try:
            plugin.agent.save_checkpoint(plugin.config.checkpoint_path)
        except CheckpointError as e:
            logger.error(f"Final checkpoint failed: {e}")
    logger.info("SHUTDOWN: complete")


def create_app(config: DRLSchedulerConfig) -> web.Application:
    app = setup_http_server(build_plugin(config), config.server)
    app.on_cleanup.append(_on_cleanup)
    return app


def main() -> None:
    load_dotenv()
    config = load_config()
    setup_logging(config.log_level, config.structured_logging)

    logger = get_logger("Main")
    logger.info(f"STARTUP: serving on {config.server.host}:{config.server.port}",
                plugin=config.scheduler.plugin_name, prometheus=config.prometheus.url)

    web.run_app(create_app(config), host=config.server.host, port=config.server.port, print=None)


if __name__ == "__main__":
    main()
