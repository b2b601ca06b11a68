"""Services that sit between a UI collaborator and the validator."""

from parsons.services.workspace import ProofWorkspace

__all__ = ["ProofWorkspace"]
