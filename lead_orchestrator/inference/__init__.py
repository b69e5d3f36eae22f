from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile

__all__ = ["DecisionProvider", "DecisionRequest", "ModelProfile"]
