"""KernelScope: governance state indexer for kernel/module/policy deployments."""

__version__ = "0.1.0"
