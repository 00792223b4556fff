from src.unitsync.workspace.store import InMemoryWorkspaceStore, WorkspaceStore, WorkspaceUnitHandle

__all__ = ["InMemoryWorkspaceStore", "WorkspaceStore", "WorkspaceUnitHandle"]
