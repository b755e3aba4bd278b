"""
Budget Kernel - execution request approval and budget ledger

A transactional core for construction-project budgets with:
- Strictly ordered, role-gated approval chains
- Rejection cascade with reservation release
- Atomic ledger commit and project rollup on final approval
- Fixed-point decimal money throughout
"""

__version__ = "0.1.0"
