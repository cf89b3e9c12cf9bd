"""Command-line and interactive shell client for Fedora LDP repositories."""
