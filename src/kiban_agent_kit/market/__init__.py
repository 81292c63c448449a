"""Market data from the DexScreener public API."""
