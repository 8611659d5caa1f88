"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, ViewParams) + draft validation
- task_errors.py: error taxonomy shared by repository, API and client
- task_store.py: JSON / in-memory snapshot stores + view-state persistence
- task_query.py: pure filter+sort engine used by both repository and cache
- task_api.py: async repository (latency, per-id serialization)
- task_cache.py: client-side copy of the collection + view state
- task_coordinator.py: per-id busy tracking, dispatch, refresh after settle
"""
