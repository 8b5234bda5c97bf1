"""Domain layer: entities, pure sync logic, collaborator interfaces and exceptions."""
