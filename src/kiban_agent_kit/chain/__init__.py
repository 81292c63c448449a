"""Chain definitions and the async Web3 client shared by all services."""
