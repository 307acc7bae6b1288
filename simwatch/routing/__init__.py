"""simwatch notification routing — delivers snapshots to the configured sinks.

Sinks are pluggable targets implementing the ``BaseSink`` protocol: the
Rich console sink and the external HTTP report sink ship with simwatch.

The ``NotificationDispatcher`` always delivers to the console first and
treats external delivery as best-effort, retrying only the final report.
"""
