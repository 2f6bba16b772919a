"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Category, UserSettings, enums, TaskDraft, TaskPatch)
- task_store.py: repository over the persistence gateway's three slots
- task_query.py: filter/sort pipeline, stats, display formatting
- transfer.py: snapshot export/import + backup file helpers
"""
