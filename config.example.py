# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # Logging
    "TASKWINDOW_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASKWINDOW_LOG_DEBUG": "Log per-tick/per-run scheduler chatter at DEBUG (true/false, default: false).",
    # Paths (gitignored)
    "TASKWINDOW_DATA_DIR": "Local data directory, also holds taskwindow.log (default: .local/taskwindow).",
    "TASKWINDOW_DB_PATH": "Task database SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Poll loop
    "TASKWINDOW_COOLDOWN": "Pause between polls for due tasks, e.g. 30s or 5min (default: 60s).",
}
