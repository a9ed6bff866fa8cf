# src/augcurve/assets/__init__.py
"""
External collaborators of the token core.

  - ledger: the external fungible (reserve) asset, with an all-or-nothing
    transfer batch used by the executor
  - funding_pool: custodian of the theta split and burn friction; emits
    allocation notices consumed by the vesting ledger
"""
