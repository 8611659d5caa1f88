# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
which is gitignored). Every variable has a local default, so nothing is required to start.

Typical setups:
- single process:   taskdeck console                (TASKDECK_BACKEND=local)
- API + console:    taskdeck serve  /  TASKDECK_BACKEND=http taskdeck console
"""

ENV_VARS = {
    # App / logging
    "TASKDECK_APP_NAME": "App display name (default: taskdeck).",
    "TASKDECK_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "TASKDECK_DATA_DIR": "Local data directory (default: .local/taskdeck).",
    "TASKDECK_TASKS_PATH": "Task snapshot JSON file (default: <data_dir>/tasks.json).",
    "TASKDECK_VIEW_STATE_PATH": "Saved search/filter/sort (default: <data_dir>/view_state.json).",
    # Repository
    "TASKDECK_LATENCY_SECONDS": "Artificial delay before every repository call (default: 0.5).",
    # HTTP API
    "TASKDECK_API_HOST": "Bind host for `taskdeck serve` (default: 127.0.0.1).",
    "TASKDECK_API_PORT": "Bind port for `taskdeck serve` (default: 8000).",
    "TASKDECK_API_BASE_URL": "Base URL the console uses in http mode (default: http://<host>:<port>).",
    "TASKDECK_HTTP_TIMEOUT_SECONDS": "Client request timeout (default: 10).",
    # Console
    "TASKDECK_BACKEND": "local (in-process repository) or http (talk to the API) (default: local).",
}
