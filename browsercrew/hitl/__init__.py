"""Human-in-the-loop approval."""

from .approval import ApprovalDecision, ApprovalGate, ApprovalResponder, Approver, approve_all

__all__ = ["ApprovalDecision", "ApprovalGate", "ApprovalResponder", "Approver", "approve_all"]
