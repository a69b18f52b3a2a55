"""Call sites that wrap external tools in the cache protocol."""
