"""
Task subsystem.

Components:
- durations.py: compact human durations ("5min" <-> milliseconds)
- window.py: age-window specs ("1h +/- 10min")
- task_models.py: records, statuses and the registration merge
- task_store.py: SQLite-backed document store + async adapter
- events.py: lifecycle event bus
- task_scheduler.py: registration, startup barrier, run state machine, poll loop
"""
