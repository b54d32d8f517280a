"""Poller internals: cancelable result, retry counter, timers, registry."""
