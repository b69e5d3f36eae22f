from lead_orchestrator.notifications.handoff_notifier import HandoffNotifier
from lead_orchestrator.notifications.outbound import Messenger, OutboundSender, TwilioSender

__all__ = ["HandoffNotifier", "Messenger", "OutboundSender", "TwilioSender"]
