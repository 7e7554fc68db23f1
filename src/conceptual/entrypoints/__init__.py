"""Entrypoints (inbound adapters) for conceptual.

Expose the runtime to the outside world through the command-line interface.
Parse and validate inputs, call into the bootstrap and isolation packages,
and present results.

Dependency rule: may import `conceptual.bootstrap`, `conceptual.isolation`
and `conceptual.service_layer`; avoid importing `conceptual.adapters` directly.
"""
