"""ERC20 token operations and Uniswap V3 swaps."""
