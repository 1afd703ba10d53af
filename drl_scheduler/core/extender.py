"""
Kubernetes scheduler-extender HTTP service.

The scheduler posts ExtenderArgs to ``/prioritize`` for every pod; the
handler runs the plugin's three phases in order and answers with a
HostPriorityList.
"""

import json
from typing import List, Optional

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from drl_scheduler.config import ServerConfig
from drl_scheduler.core.framework import CycleContext, NodeScore, Pod, PreScoreResult
from drl_scheduler.core.plugin import DRLSchedulerPlugin
from drl_scheduler.utils.exceptions import (
    DRLSchedulerError, MetricsQueryError, MissingServiceLabelError,
)
from drl_scheduler.utils.logging_config import get_logger

logger = get_logger("Extender")

PLUGIN_KEY = web.AppKey("plugin", DRLSchedulerPlugin)
SERVER_CONFIG_KEY = web.AppKey("server_config", ServerConfig)


def _field(body: dict, name: str):
    """ExtenderArgs fields arrive capitalised or lowercase depending on the scheduler version."""
    if name in body:
        return body[name]
    return body.get(name.lower())


def parse_extender_args(body: dict) -> tuple:
    """
    Extract the pod and candidate node names from ExtenderArgs.

    Returns:
        Tuple of (Pod, node names)
    """
    if not isinstance(body, dict):
        raise ValueError("ExtenderArgs must be a JSON object")

    pod = Pod.from_manifest(_field(body, "Pod") or {})

    nodes = _field(body, "Nodes")
    if nodes:
        items = nodes.get("items") or []
        node_names = [item.get("metadata", {}).get("name") for item in items]
    else:
        node_names = list(_field(body, "NodeNames") or [])

    if any(not name for name in node_names):
        raise ValueError("every candidate node needs a name")
    return pod, node_names


def to_host_priorities(scores: List[NodeScore], max_node_score: int, extender_max_score: int) -> List[dict]:
    """Scale plugin scores into the extender's integer range."""
    return [
        {"Host": s.name, "Score": int(round(s.score * extender_max_score / max_node_score))}
        for s in scores
    ]


async def run_cycle(plugin: DRLSchedulerPlugin, pod: Pod, node_names: List[str]) -> List[NodeScore]:
    """Run Pre-Score, Score and Normalize-Score for one pod."""
    ctx = CycleContext()
    result = await plugin.pre_score(ctx, pod, node_names)
    if result is PreScoreResult.NO_NODES_AVAILABLE:
        return []

    scores = [NodeScore(name, plugin.score(ctx, pod, name)) for name in node_names]
    await plugin.score_extensions().normalize_score(ctx, pod, scores)
    return scores


def _error_response(error: Exception, status: int) -> web.Response:
    payload = {"error": str(error), "type": type(error).__name__}
    context = getattr(error, "context", None)
    if context:
        payload["context"] = context
    return web.json_response(payload, status=status, dumps=lambda o: json.dumps(o, default=str))


async def prioritize_handler(request: web.Request) -> web.Response:
    """Score candidate nodes for one pod."""
    plugin = request.app[PLUGIN_KEY]
    server_config = request.app[SERVER_CONFIG_KEY]

    try:
        body = await request.json()
        pod, node_names = parse_extender_args(body)
    except (json.JSONDecodeError, ValueError, AttributeError) as e:
        logger.warning(f"Malformed ExtenderArgs: {e}")
        return _error_response(e, 400)

    try:
        scores = await run_cycle(plugin, pod, node_names)
    except MissingServiceLabelError as e:
        logger.warning(f"Rejected pod {pod.name}: {e}")
        return _error_response(e, 400)
    except MetricsQueryError as e:
        logger.error(f"Cluster metrics unavailable for pod {pod.name}: {e}")
        return _error_response(e, 503)
    except DRLSchedulerError as e:
        logger.error(f"Scoring failed for pod {pod.name}: {e}")
        return _error_response(e, 500)

    return web.json_response(
        to_host_priorities(scores, plugin.config.max_node_score, server_config.extender_max_score)
    )


async def metrics_handler(request: web.Request) -> web.Response:
    """Prometheus metrics"""
    return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def root_handler(request: web.Request) -> web.Response:
    """Service information"""
    plugin = request.app[PLUGIN_KEY]
    return web.json_response({
        "message": "DRL Scheduler",
        "plugin": plugin.name(),
        "status": "running",
        "endpoints": {
            "GET /": "Service info",
            "GET /healthz": "Health check",
            "GET /metrics": "Prometheus metrics",
            "POST /prioritize": "Score candidate nodes for a pod",
        }
    })


def _counter_total(name: str) -> int:
    return int(REGISTRY.get_sample_value(f"{name}_total") or 0)


async def health_handler(request: web.Request) -> web.Response:
    """Health check with agent status"""
    plugin = request.app[PLUGIN_KEY]
    stats = plugin.agent.get_stats()
    return web.json_response({
        "status": "healthy",
        "service": "drl-scheduler",
        "agent": {
            "steps": stats["steps"],
            "epsilon": stats["epsilon"],
            "memory_size": stats["memory"]["size"],
            "online_version": stats["online_version"],
            "target_version": stats["target_version"],
        },
        "metrics": {
            "decisions_total": _counter_total("drl_scheduler_decisions"),
            "degraded_total": _counter_total("drl_scheduler_degraded_cycles"),
            "reward_keys": len(plugin.aggregator),
        }
    })


def setup_http_server(plugin: DRLSchedulerPlugin, server_config: Optional[ServerConfig] = None) -> web.Application:
    """Create the extender application with all routes."""
    app = web.Application()
    app[PLUGIN_KEY] = plugin
    app[SERVER_CONFIG_KEY] = server_config or ServerConfig()

    app.router.add_get('/', root_handler)
    app.router.add_get('/healthz', health_handler)
    app.router.add_get('/metrics', metrics_handler)
    app.router.add_post('/prioritize', prioritize_handler)

    return app
