"""
Prometheus client that assembles the cluster feature vector for a scheduling cycle.
"""

import asyncio
import math
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import numpy as np

from drl_scheduler.config import PrometheusConfig
from drl_scheduler.data.queries import FEATURE_ORDER, NodeQueries
from drl_scheduler.utils.exceptions import ErrorContext, MetricsQueryError, PrometheusError
from drl_scheduler.utils.logging_config import get_logger


class PrometheusClient:
    """
    Async Prometheus client with proper error handling and type safety.
    """

    def __init__(self, config: Optional[PrometheusConfig] = None):
        self.config = config or PrometheusConfig()
        self.logger = get_logger("PrometheusClient")
        self._session: Optional[aiohttp.ClientSession] = None
        self._base_url = f"{self.config.url}/api/v1"

    async def __aenter__(self) -> 'PrometheusClient':
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is created."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": "DRL-Scheduler/1.0"}
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def query(self, promql: str) -> float:
        """
        Execute an instant vector query and return a single float value.

        Negative and NaN samples read as 0.0, as does an empty result.

        Raises:
            PrometheusError: If the query fails or returns invalid data
        """
        with ErrorContext("prometheus_query", "PrometheusClient").add_context(query=promql):
            try:
                await self._ensure_session()

                self.logger.debug("Executing Prometheus query", query=promql)

                async with self._session.get(f"{self._base_url}/query", params={"query": promql}) as response:
                    if response.status != 200:
                        raise PrometheusError(
                            f"Prometheus query failed with status {response.status}",
                            context={"status": response.status}
                        )

                    data = await response.json()

                    if data.get("status") != "success":
                        raise PrometheusError(
                            f"Prometheus query returned error: {data.get('error', 'Unknown error')}"
                        )

                    if data.get("warnings"):
                        raise PrometheusError(
                            f"Prometheus query returned warnings: {data['warnings']}"
                        )

                    payload = data.get("data", {})
                    if payload.get("resultType") != "vector":
                        raise PrometheusError(
                            f"Unexpected result type: {payload.get('resultType')}"
                        )

                    return self._parse_vector(payload.get("result", []), promql)

            except aiohttp.ClientError as e:
                raise PrometheusError(f"HTTP client error during Prometheus query: {e}") from e
            except asyncio.TimeoutError as e:
                raise PrometheusError(
                    f"Timeout during Prometheus query: {e}",
                    context={"timeout": self.config.timeout}
                ) from e

    def _parse_vector(self, result: List[Dict[str, Any]], promql: str) -> float:
        if not result:
            self.logger.warning("Prometheus query returned no data", query=promql)
            return 0.0

        # Last sample wins, as with a single aggregated series
        raw = result[-1].get("value", [None, "0"])[1]
        try:
            value = float(raw)
        except (ValueError, TypeError) as e:
            raise PrometheusError(
                f"Invalid value from Prometheus query: {raw}",
                context={"value": raw}
            ) from e

        if math.isnan(value) or value < 0:
            return 0.0
        return value

    async def query_node_features(self, node_name: str) -> List[float]:
        """Fetch one node's feature row, ordered as FEATURE_ORDER."""
        queries = NodeQueries.get_raw_queries(node_name)
        values = await asyncio.gather(*(self.query(q) for q in queries.values()))
        samples = dict(zip(queries.keys(), values))
        return NodeQueries.to_feature_row(samples)

    async def query_cluster_features(self, node_names: Sequence[str]) -> np.ndarray:
        """
        Fetch the cluster feature vector, one row per node in the given order.

        Fails atomically: if any node cannot be queried no partial vector is
        returned and a single MetricsQueryError names every failed node.

        Raises:
            MetricsQueryError: If any node's features cannot be fetched
        """
        results = await asyncio.gather(
            *(self.query_node_features(name) for name in node_names),
            return_exceptions=True
        )

        failures = {}
        for name, result in zip(node_names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures[name] = str(result)

        if failures:
            raise MetricsQueryError(
                f"Failed to query features for {len(failures)} of {len(node_names)} nodes",
                context={"failed_nodes": failures}
            )

        state = np.array(results, dtype=np.float32).reshape(len(node_names), len(FEATURE_ORDER))
        self.logger.debug("Fetched cluster features", nodes=len(node_names))
        return state
