"""
Payroll Modules.

Stateful orchestration layers over the Payroll Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- Services (the public entry points)

Modules:
- Contractor Pay: weekly pay periods, milestone bonuses, placement progress
"""
