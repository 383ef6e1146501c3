"""LP dealer core.

This package contains the building blocks of an automated liquidity-provider
dealer:

- policy: configurable rules, validation and decision rationale
- analytics: realized volatility, range suggestions, impermanent loss
- execution: signing capabilities and exchange adapters (paper by default)
- automation: typed operations, orchestration and audit trail
- config: environment settings and policy-rules loading

Execution defaults to the paper adapter; a live adapter only signs once a
capability has been loaded into it.
"""
