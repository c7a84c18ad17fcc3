"""
Trading Engine Components

- RetryExecutor: bounded exponential backoff for every network call
- PriceOracle: SOL/USDC price from swap quotes
- TrendAnalyzer: advisory 1h/24h/7d direction and volatility
- PositionStateMachine: guards which asset the wallet holds
- TradeDecisionPolicy: 1% threshold rule
- SwapExecutor: quote -> build -> sign -> submit state machine
- BalanceReconciler: realized price from on-chain balance deltas
- ProfitAccountant: profit and win/loss counters
- StateReconciler: rehydrates TradingState on start
- TradingCycle: runs one decision cycle end to end
"""
