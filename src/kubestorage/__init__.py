"""kube-storage-metrics: per-node pod storage exporter for Prometheus."""

__version__ = "0.3.0"

JOB_NAME = "kubernetes-storage-metrics"
