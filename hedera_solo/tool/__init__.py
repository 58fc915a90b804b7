"""Command line tool for hedera-solo."""
