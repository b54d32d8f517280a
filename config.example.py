# config.example.py

"""
Documentation-only module (safe to commit).

System defaults are loaded from environment variables (optionally via a local .env file).
Per-poller defaults (Poller(config) / set_config) and per-task keyword overrides take
precedence over these.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # Logging (used by the taskpoll-demo entry point)
    "TASKPOLL_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASKPOLL_LOG_DIR": "Directory for taskpoll.log (default: unset, no file log).",
    # Poll defaults
    "TASKPOLL_INTERVAL": "Milliseconds between invocations (default: 1000).",
    "TASKPOLL_TIMEOUT": "Per-invocation timeout in ms, clamped to the interval (default: interval).",
    "TASKPOLL_RETRY_LIMIT": "Consecutive failures allowed, or 'unlimited' (default: 10).",
    "TASKPOLL_RUN_ON_START": "Invoke once immediately on submit (true/false, default: false).",
}
