"""pNode Monitor: periodic pRPC sync and read API for storage network nodes."""
