"""simwatch terminal rendering.

Modules
-------
renderer
    ``SnapshotRenderer`` turns a ``Snapshot`` into Rich renderables for the
    end-of-run summary panel.
"""
