"""
Chain and swap-provider clients.

- JupiterClient: quote and swap-transaction HTTP API
- SolanaRpcClient / SolanaWallet: balances, blockhash, signing, submission
"""
