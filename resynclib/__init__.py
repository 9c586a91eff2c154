"""
Library for restarting the Windows Time service and forcing a clock resync.

Split into `plumbing` (single service actions), `tasks` (complete sequences of actions) and
`scripts` (command-line entrypoints).
"""
