"""duewatch - task list viewer with urgency classification."""
