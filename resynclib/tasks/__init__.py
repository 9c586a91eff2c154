"""
Higher-level methods to interact with the time service.

Each public function in this module should:

- perform a complete task, as needed by a script or user action
- avoid non-idempotent calls unless required by a prior state change
- create and manage contexts for any resources needed by plumbing
"""
