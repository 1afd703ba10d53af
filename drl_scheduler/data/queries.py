"""Predefined Prometheus queries for the per-node scheduling features."""
from typing import Dict, List

# Column order of one node's row in the cluster feature vector
FEATURE_ORDER: List[str] = [
    'cpu_used',
    'memory_used',
    'fs_used',
    'fs_write_rate',
    'cpu_headroom',
    'memory_headroom',
    'fs_headroom',
    'fs_read_rate',
]


def _escape(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"')


class NodeQueries:
    """Prometheus query definitions for one node's raw samples."""

    @staticmethod
    def get_raw_queries(node_name: str) -> Dict[str, str]:
        """Get the raw sample queries the node's feature row is derived from."""
        node = _escape(node_name)
        return {
            # CPU: 3m irate of usage vs. requested cores, the larger one counts as used
            "cpu_usage":
                f'sum(irate(container_cpu_usage_seconds_total{{container!="",node="{node}"}}[3m]))',
            "cpu_requests":
                f'sum(kube_pod_container_resource_requests{{resource="cpu",unit="core",node="{node}"}})',
            "cpu_allocatable":
                f'sum(kube_node_status_allocatable{{resource="cpu",unit="core",node="{node}"}})',

            # Memory: working set vs. requested bytes
            "memory_usage":
                f'sum(container_memory_working_set_bytes{{container!="",node="{node}"}})',
            "memory_requests":
                f'sum(kube_pod_container_resource_requests{{resource="memory",unit="byte",node="{node}"}})',
            "memory_allocatable":
                f'sum(kube_node_status_allocatable{{resource="memory",unit="byte",node="{node}"}})',

            # Root filesystem
            "fs_usage":
                f'sum(container_fs_usage_bytes{{device=~"^/dev/.*$",id="/",node="{node}"}})',
            "fs_limit":
                f'sum(container_fs_limit_bytes{{device=~"^/dev/.*$",id="/",node="{node}"}})',
            "fs_write_rate":
                f'sum(sum(rate(container_fs_writes_bytes_total{{image!="",node="{node}"}}[1m])) without (device))',
            "fs_read_rate":
                f'sum(sum(rate(container_fs_reads_bytes_total{{image!="",node="{node}"}}[1m])) without (device))',
        }

    @staticmethod
    def to_feature_row(samples: Dict[str, float]) -> List[float]:
        """Combine raw samples into a row ordered as FEATURE_ORDER."""
        cpu_used = max(samples["cpu_usage"], samples["cpu_requests"])
        memory_used = max(samples["memory_usage"], samples["memory_requests"])
        fs_used = samples["fs_usage"]
        return [
            cpu_used,
            memory_used,
            fs_used,
            samples["fs_write_rate"],
            samples["cpu_allocatable"] - cpu_used,
            samples["memory_allocatable"] - memory_used,
            samples["fs_limit"] - fs_used,
            samples["fs_read_rate"],
        ]
